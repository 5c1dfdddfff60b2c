"""Access to receipt datasets stored on disk.

Layout::

    data/<dataset>/<split>/<document_id>/
        image.jpeg          scanned receipt
        ocr.json            list of {x, y, width, height, text}
        ground-truth.json   {LABEL: [observed strings]}
"""

import csv
import io
import json
import logging
import random
import shutil
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from pydantic import TypeAdapter

from .layout import TextSegment


logger = logging.getLogger(__name__)

OCR_FILE = "ocr.json"
GROUND_TRUTH_FILE = "ground-truth.json"
IMAGE_EXTENSIONS = [".jpeg", ".jpg", ".png", ".pdf"]

_segments_adapter = TypeAdapter(List[TextSegment])
_ground_truth_adapter = TypeAdapter(Dict[str, List[str]])


class DataPoint:
    """A single receipt directory inside a dataset split."""

    def __init__(self, dataset: str, document_id: str, path: Path):
        self.dataset = dataset
        self.id = document_id
        self.path = path

    def __repr__(self) -> str:
        return f"DataPoint(dataset={self.dataset!r}, id={self.id!r})"

    def list_files(self) -> List[str]:
        return sorted(p.name for p in self.path.iterdir() if p.is_file())

    def load_file(self, name: str) -> bytes:
        return (self.path / name).read_bytes()

    def save_file(self, name: str, data: bytes) -> None:
        (self.path / name).write_bytes(data)

    def has_file(self, name: str) -> bool:
        return (self.path / name).is_file()

    def image_path(self) -> Path:
        """Path to the receipt scan.

        Raises:
            FileNotFoundError: If the directory holds no supported image
        """
        for ext in IMAGE_EXTENSIONS:
            candidate = self.path / f"image{ext}"
            if candidate.is_file():
                return candidate
        raise FileNotFoundError(f"No receipt image found in {self.path}")

    def load_segments(self) -> List[TextSegment]:
        """Load the OCR words of this receipt."""
        return _segments_adapter.validate_json(self.load_file(OCR_FILE))

    def save_segments(self, segments: Sequence[TextSegment]) -> None:
        content = json.dumps([asdict(s) for s in segments], ensure_ascii=False)
        self.save_file(OCR_FILE, content.encode("utf-8"))

    def load_ground_truth(self) -> Dict[str, List[str]]:
        """Load the annotated values of this receipt, keyed by label name."""
        return _ground_truth_adapter.validate_json(self.load_file(GROUND_TRUTH_FILE))


class Dataset:
    """A named collection of receipts split into e.g. train and eval."""

    def __init__(self, name: str, path: Path):
        self.name = name
        self.path = path

    def list_data_points(self, split: str = "eval") -> List[DataPoint]:
        """List the receipts of a split, sorted by document id.

        Raises:
            FileNotFoundError: If the split directory does not exist
        """
        split_path = self.path / split
        if not split_path.is_dir():
            raise FileNotFoundError(f"Dataset split not found: {split_path}")

        return [
            DataPoint(self.name, entry.name, entry)
            for entry in sorted(split_path.iterdir())
            if entry.is_dir()
        ]


def sample_data_points(
    data_points: Sequence[DataPoint],
    limit: Optional[int],
    seed: str = "42"
) -> List[DataPoint]:
    """Draw a reproducible random subset of data points.

    Args:
        data_points: All candidates
        limit: Maximum number to keep; None or 0 keeps everything
        seed: Seed for the random generator

    Returns:
        Selected data points in draw order
    """
    if not limit:
        return list(data_points)

    rng = random.Random(seed)
    source = list(data_points)
    selected = []

    while source and len(selected) < limit:
        idx = int(rng.random() * len(source))
        selected.append(source.pop(idx))

    return selected


# =============================================================================
# Importing annotated receipts
# =============================================================================

def annotations_to_ground_truth(annotations: str) -> Dict[str, List[str]]:
    """Convert BIO-tagged token annotations into ground truth values.

    Each row is semicolon separated; the fifth column holds the token text
    and the sixth its tag (e.g. "B-TOTAL", "I-ADDRESS" or "O"). "B" starts a
    new value, "I" continues the latest value of the same label.

    Args:
        annotations: CSV content

    Returns:
        Mapping from label name to its observed values

    Raises:
        ValueError: If a row is not in the expected format
    """
    result: Dict[str, List[str]] = {}

    for row in csv.reader(io.StringIO(annotations), delimiter=";"):
        if not row:
            continue

        text = row[4] if len(row) > 4 else ""
        bio_label = row[5] if len(row) > 5 else ""
        tag, _, label = bio_label.partition("-")

        if tag == "O":
            continue
        if not text or not tag or not label:
            raise ValueError(f"Expected an annotation row of known format, got: {row}")

        values = result.setdefault(label, [])
        if tag == "B":
            values.append(text)
        elif tag == "I":
            if not values:
                raise ValueError(f"Inside tag without a preceding begin tag: {row}")
            values[-1] = f"{values[-1]} {text}"
        else:
            raise ValueError(f"Unknown annotation tag {tag!r} in row: {row}")

    return result


def import_annotated_receipts(
    images_dir: Path,
    annotations_dir: Path,
    dataset_path: Path,
    split: str = "eval"
) -> int:
    """Copy annotated receipt images into the dataset layout.

    Images without a matching "<id>.csv" in annotations_dir are skipped.

    Returns:
        Number of imported receipts
    """
    imported = 0

    for image in sorted(images_dir.iterdir()):
        if not image.is_file():
            continue

        document_id = image.stem
        annotation_file = annotations_dir / f"{document_id}.csv"
        if not annotation_file.exists():
            logger.debug(f"Skipping {image.name}: no annotations")
            continue

        ground_truth = annotations_to_ground_truth(annotation_file.read_text(encoding="utf-8"))

        target = dataset_path / split / document_id
        target.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(image, target / f"image{image.suffix.lower()}")

        with open(target / GROUND_TRUTH_FILE, "w", encoding="utf-8") as f:
            json.dump(ground_truth, f, ensure_ascii=False)

        imported += 1

    logger.info(f"Imported {imported} annotated receipts into {dataset_path / split}")
    return imported
