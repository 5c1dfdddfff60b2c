"""Reading and writing evaluation report files."""

import json
import logging
from pathlib import Path
from typing import Any, Dict

from ..evaluation import Evaluation


logger = logging.getLogger(__name__)


def round_floats(obj, decimals: int = 3):
    """Recursively round all float values in a data structure.

    Args:
        obj: Any data structure (dict, list, or primitive)
        decimals: Number of decimal places to round to

    Returns:
        Same structure with floats rounded
    """
    if isinstance(obj, float):
        return round(obj, decimals)
    elif isinstance(obj, dict):
        return {k: round_floats(v, decimals) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [round_floats(item, decimals) for item in obj]
    return obj


def get_evaluation_filename(dataset: str, strategy: str, timestamp: str) -> str:
    """Get the report filename for a run.

    Colons in the timestamp are replaced so the name is valid on every
    file system, e.g. "eval-custom-simple-2023-05-01T12-00-00.json".
    """
    safe_timestamp = timestamp.replace(":", "-")
    return f"eval-{dataset}-{strategy}-{safe_timestamp}.json"


def save_evaluation(evaluation: Evaluation, output_path: Path, decimals: int = 4) -> Dict[str, Any]:
    """Write an evaluation report as JSON.

    Args:
        evaluation: Evaluation results
        output_path: Path of the JSON file
        decimals: Precision of the stored metrics

    Returns:
        The report dictionary that was written
    """
    report = round_floats(evaluation.to_dict(), decimals=decimals)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(report, f, indent=2, ensure_ascii=False)

    logger.info(f"Saved evaluation to {output_path}")
    return report


def load_evaluation(path: Path) -> Dict[str, Any]:
    """Load a report written by save_evaluation."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
