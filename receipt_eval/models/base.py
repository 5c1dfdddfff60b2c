"""Abstract base classes for OCR and completion providers."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List

from ..layout import TextSegment


class OCRModel(ABC):
    """Abstract base class for OCR models.

    All OCR model implementations should inherit from this class
    and implement the required methods.
    """

    @abstractmethod
    def get_model_name(self) -> str:
        """Return a unique identifier for this model.

        Returns:
            str: Model identifier (e.g., 'document_intelligence')
        """
        pass

    @abstractmethod
    def process_document(self, file_path: Path) -> List[TextSegment]:
        """Recognize the words of a receipt scan.

        Args:
            file_path: Path to the document (PDF, PNG, JPEG)

        Returns:
            Words with page-fraction bounding boxes, in provider order

        Raises:
            Exception: If document processing fails
        """
        pass

    def get_last_raw_response_dict(self) -> Dict[str, Any]:
        """Raw response of the last processed document, for debugging."""
        return {}


class CompletionModel(ABC):
    """Abstract base class for text completion models."""

    @abstractmethod
    def get_model_name(self) -> str:
        """Return the model identifier sent to the provider."""
        pass

    @abstractmethod
    def complete(self, prompt: str) -> str:
        """Return the model's completion for a prompt.

        Raises:
            Exception: If the provider call fails after retries
        """
        pass
