"""Azure Document Intelligence OCR model implementation."""

import time
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from azure.ai.formrecognizer import DocumentAnalysisClient
from azure.core.credentials import AzureKeyCredential
from azure.core.exceptions import HttpResponseError

from .base import OCRModel
from ..config import Config
from ..layout import TextSegment


logger = logging.getLogger(__name__)

# Words recognized with lower confidence are dropped
MIN_WORD_CONFIDENCE = 0.6


class DocumentIntelligenceModel(OCRModel):
    """Azure Document Intelligence implementation using the prebuilt-read model."""

    def __init__(self, config: Config, client: Optional[DocumentAnalysisClient] = None):
        """Initialize the Document Intelligence client.

        Args:
            config: Configuration object with Azure credentials
            client: Pre-built client, mainly for tests
        """
        self.config = config
        self.client = client or DocumentAnalysisClient(
            endpoint=config.azure_endpoint,
            credential=AzureKeyCredential(config.azure_key)
        )
        self._last_raw_response: Optional[Any] = None

        # Retry configuration
        self.max_retries = 3
        self.base_delay = 1.0  # seconds
        self.min_confidence = MIN_WORD_CONFIDENCE

    def get_model_name(self) -> str:
        """Return the model identifier."""
        return "document_intelligence"

    def process_document(self, file_path: Path) -> List[TextSegment]:
        """Process a receipt through Azure Document Intelligence.

        Args:
            file_path: Path to the document (PDF, PNG, JPEG)

        Returns:
            Recognized words with page-fraction bounding boxes
        """
        result = self._analyze_with_retry(file_path)
        self._last_raw_response = result
        return self._parse_words(result)

    def _analyze_with_retry(self, file_path: Path) -> Any:
        """Analyze document with exponential backoff retry.

        Args:
            file_path: Path to the document

        Returns:
            Analysis result from Azure

        Raises:
            HttpResponseError: If all retries fail
        """
        last_error = None

        for attempt in range(self.max_retries):
            try:
                with open(file_path, "rb") as f:
                    poller = self.client.begin_analyze_document(
                        "prebuilt-read",
                        document=f
                    )
                    return poller.result()

            except HttpResponseError as e:
                last_error = e

                # Check if it's a rate limit error (429)
                if getattr(e, "status_code", None) == 429:
                    delay = self.base_delay * (2 ** attempt)
                    logger.warning(
                        f"Rate limited on {file_path.name}, "
                        f"retrying in {delay}s (attempt {attempt + 1}/{self.max_retries})"
                    )
                    time.sleep(delay)
                else:
                    # For other errors, raise immediately
                    raise

        # All retries exhausted
        raise last_error

    def _parse_words(self, result: Any) -> List[TextSegment]:
        """Convert Azure words into text segments.

        Polygons are reduced to their bounding box and divided by the page
        size, so every coordinate ends up in the 0-1 range.

        Args:
            result: Azure AnalyzeResult

        Returns:
            Text segments for all pages in provider order
        """
        segments = []

        for page in result.pages or []:
            if not page.width or not page.height:
                logger.warning(f"Skipping page {page.page_number}: missing dimensions")
                continue

            for word in page.words or []:
                if word.confidence is not None and word.confidence <= self.min_confidence:
                    continue
                if not word.polygon:
                    continue

                xs = [p.x for p in word.polygon]
                ys = [p.y for p in word.polygon]

                segments.append(TextSegment(
                    x=min(xs) / page.width,
                    y=min(ys) / page.height,
                    width=(max(xs) - min(xs)) / page.width,
                    height=(max(ys) - min(ys)) / page.height,
                    text=word.content,
                ))

        return segments

    def get_last_raw_response_dict(self) -> Dict[str, Any]:
        """Get the last raw response as a dictionary.

        Returns:
            Dictionary representation of the last API response, or empty dict if none.
        """
        if self._last_raw_response is None:
            return {}
        return self._convert_to_dict(self._last_raw_response)

    def _convert_to_dict(self, result: Any) -> Dict[str, Any]:
        """Convert Azure response to a JSON-serializable dictionary.

        Args:
            result: Azure AnalyzeResult

        Returns:
            Dictionary with content, pages and words including confidences
        """
        output = {
            "model_id": getattr(result, "model_id", None),
            "api_version": getattr(result, "api_version", None),
            "content": getattr(result, "content", None),
            "pages": [],
        }

        for page in getattr(result, "pages", None) or []:
            output["pages"].append({
                "page_number": page.page_number,
                "width": page.width,
                "height": page.height,
                "unit": page.unit,
                "words": [
                    {
                        "content": word.content,
                        "confidence": word.confidence,
                        "polygon": [{"x": p.x, "y": p.y} for p in word.polygon or []],
                    }
                    for word in page.words or []
                ],
            })

        return output
