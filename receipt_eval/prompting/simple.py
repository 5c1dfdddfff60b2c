"""Prompt with the receipt text as reading-ordered lines, answered in JSON."""

import json
import logging
import re
from typing import Any, Dict, Optional, Sequence

from pydantic import BaseModel, ConfigDict, field_validator

from .base import PromptStrategy
from ..layout import TextSegment, sort_to_reading_order, split_to_lines, lines_to_text


logger = logging.getLogger(__name__)

JSON_BLOCK_PATTERN = re.compile(r"(\{.+\})", re.DOTALL)

FIELD_DESCRIPTIONS = {
    "total": "The total amount that was paid on the receipt. Currency is usually Euros.",
    "date": (
        "The date (not including time) when the purchase was made, in formats like "
        '"dd.MM.yyyy", "dd-MM-yyyy", "yyyy-MM-dd" or "dd/MM/yyyy".'
    ),
    "company": "The name of the company which issued the receipt, including the shop location.",
    "address": (
        "The physical location of the vendor such as street name, postal code and city. "
        "Cannot be a fax, phone number or any other ID."
    ),
}

# Sample values shown to the model for the fields with the most varied formats
FIELD_EXAMPLES = {
    "address": [
        "Finnoonlaaksontie 1-5 , 02270 Espoo",
        "HÄMEENTIE 13B 00530 HELSINKI",
        "Mannerheimintie 5 00100 HELSINKI",
        "Eteläesplanadi 8",
        "Laivalahdenkatu 1 00810 Turku",
    ],
    "company": [
        "RAVINTOLA KOREA HOUSE",
        "PRISMA HERTTONIEMI",
        "K - Supermarket Redi",
        "McDonald's Herttoniemi",
        "Lidl Suomi Ky",
    ],
    "date": [
        "6.11.2021",
        "23.12.2016",
        "2023-01-27",
        "16-11-2021",
        "12/9/2020",
    ],
}


class ReceiptFields(BaseModel):
    """Fields answered by the model; anything else in the JSON is ignored."""
    model_config = ConfigDict(extra="ignore")

    total: Optional[str] = None
    date: Optional[str] = None
    company: Optional[str] = None
    address: Optional[str] = None

    @field_validator("total", "date", "company", "address", mode="before")
    @classmethod
    def coerce_to_text(cls, value: Any) -> Optional[str]:
        # Totals are often answered as JSON numbers
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, str):
            return value
        return None


class SimplePromptStrategy(PromptStrategy):
    """Asks for a JSON object given the receipt lines as context."""

    name = "simple"

    def get_prompt(self, segments: Sequence[TextSegment]) -> str:
        lines = lines_to_text(split_to_lines(sort_to_reading_order(segments)))

        field_names = ", ".join(f'"{name}"' for name in FIELD_DESCRIPTIONS)
        parts = [
            " ".join([
                "Given the OCR text of a receipt as context, line by line,",
                f"respond with JSON having the following fields: {field_names}.",
                "Do not include any other fields.",
                "Use null for fields that do not appear on the receipt.",
                "Field values can only include text from the context.",
            ]),
            "",
            *[f'- "{name}": {description}' for name, description in FIELD_DESCRIPTIONS.items()],
            "",
        ]
        for name, examples in FIELD_EXAMPLES.items():
            parts.append(f'Examples of text labeled as "{name}":')
            parts.extend(f"- {example}" for example in examples)
            parts.append("")

        parts += [
            "Context:",
            *lines,
            "",
            "JSON:",
        ]
        return "\n".join(parts)

    def parse_completion(self, completion: str) -> Dict[str, Optional[str]]:
        match = JSON_BLOCK_PATTERN.search(completion)
        if not match:
            logger.debug("No JSON object found in completion")
            return {}

        try:
            data = json.loads(match.group(1))
        except json.JSONDecodeError as e:
            logger.debug(f"Could not decode completion JSON: {e}")
            return {}

        if not isinstance(data, dict):
            return {}

        fields = ReceiptFields.model_validate(data)
        return {
            "TOTAL": fields.total,
            "DATE": fields.date,
            "COMPANY": fields.company,
            "ADDRESS": fields.address,
        }
