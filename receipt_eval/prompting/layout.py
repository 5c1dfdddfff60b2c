"""Word labelling prompt that gives the model each word's position.

Every word is listed with its top-left corner scaled to 0-1000 and the model
answers with one label per word. Words sharing a label are concatenated in
answer order.
"""

import math
import re
from typing import Dict, List, Optional, Sequence

from .base import PromptStrategy
from ..layout import TextSegment, sort_to_reading_order


LABEL_DESCRIPTIONS = {
    "DATE": "The date (not including time) when the purchase was made.",
    "TOTAL": "The total amount that was paid.",
    "COMPANY": "The full name, including the shop's location, of the vendor the purchase was made from.",
    "ADDRESS": "The address where the vendor is located at. Usually includes street, postal code and city.",
    "OTHER": "Any other text segment not assignable to other labels.",
}

IGNORED_LABEL = "OTHER"

WORD_PATTERN = re.compile(r"\{(.+?)\}")
TEXT_LABEL_PATTERN = re.compile(r'txt:"(.+?)",label:"(.+?)"')


def _scale(value: float) -> int:
    return int(math.floor(value * 1000 + 0.5))


def format_word(segment: TextSegment) -> str:
    """Format a word with its scaled position, e.g. {txt:"Total",box:[120,845]}."""
    return f'{{txt:"{segment.text}",box:[{_scale(segment.x)},{_scale(segment.y)}]}}'


class LayoutPromptStrategy(PromptStrategy):
    """Asks the model to label every word given its coordinates."""

    name = "layout"

    def get_prompt(self, segments: Sequence[TextSegment]) -> str:
        label_names = ", ".join(f'"{name}"' for name in LABEL_DESCRIPTIONS)
        words = "".join(format_word(s) for s in sort_to_reading_order(segments))

        intro = " ".join([
            "Your task is to extract information from a receipt.",
            "You will be given a list of words and their x- and y-coordinates (within 0-1000),",
            "and you should label each word.",
            f"There are {len(LABEL_DESCRIPTIONS)} labels for selection: {label_names}.",
        ])
        descriptions = "\n".join(f"- {name}: {text}" for name, text in LABEL_DESCRIPTIONS.items())
        answer_format = 'Answer with one {txt:"<word>",label:"<label>"} item per word, in the given order.'

        return "\n\n".join([
            intro,
            descriptions,
            answer_format,
            f"Q: {words}, What are the labels for these texts?",
            "A:",
        ])

    def parse_completion(self, completion: str) -> Dict[str, Optional[str]]:
        words: Dict[str, List[str]] = {}

        for item in WORD_PATTERN.finditer(completion):
            match = TEXT_LABEL_PATTERN.search(item.group(1))
            if match is None:
                continue
            text, label = match.group(1), match.group(2)
            if label == IGNORED_LABEL:
                continue
            words.setdefault(label, []).append(text)

        return {label: " ".join(texts) for label, texts in words.items()}
