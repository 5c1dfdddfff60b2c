"""Prompt strategy interface."""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Sequence

from ..layout import TextSegment


class PromptStrategy(ABC):
    """Turns OCR words into a prompt and a completion back into fields."""

    name: str = ""

    @abstractmethod
    def get_prompt(self, segments: Sequence[TextSegment]) -> str:
        """Build the prompt for one receipt.

        Args:
            segments: OCR words of the receipt, in any order

        Returns:
            Prompt text
        """
        pass

    @abstractmethod
    def parse_completion(self, completion: str) -> Dict[str, Optional[str]]:
        """Extract field values from a completion.

        Returns:
            Mapping from label name (e.g. "TOTAL") to the extracted value.
            Unparseable completions give an empty mapping.
        """
        pass
