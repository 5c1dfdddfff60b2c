"""Comparison of predicted receipt fields against ground truth."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .matchers import compare_dates, compare_numbers, compare_strings
from .metrics import (
    Metrics,
    Score,
    compute_counts,
    filter_label,
    score_as_dict,
)


class Label(str, Enum):
    """Receipt fields that are extracted and scored."""
    TOTAL = "TOTAL"
    DATE = "DATE"
    COMPANY = "COMPANY"
    ADDRESS = "ADDRESS"


KNOWN_LABELS: List[Label] = [Label.TOTAL, Label.DATE, Label.COMPANY, Label.ADDRESS]

LabelRecord = Dict[Label, Optional[str]]


# =============================================================================
# Boundary conversions between string keyed maps and label records
# =============================================================================

def _empty_record(labels: Sequence[Label]) -> LabelRecord:
    return {label: None for label in labels}


def ground_truth_to_record(
    ground_truth: Mapping[str, Sequence[str]],
    labels: Sequence[Label] = KNOWN_LABELS
) -> LabelRecord:
    """Build a label record from ground truth holding several strings per label.

    Only the first observed string is kept; unknown labels are dropped.
    """
    record = _empty_record(labels)
    for name, values in ground_truth.items():
        label = _parse_label(name, labels)
        if label is not None and values:
            record[label] = values[0]
    return record


def prediction_to_record(
    prediction: Mapping[str, Optional[Any]],
    labels: Sequence[Label] = KNOWN_LABELS
) -> LabelRecord:
    """Build a label record from a parsed completion."""
    record = _empty_record(labels)
    for name, value in prediction.items():
        label = _parse_label(name, labels)
        if label is not None and value is not None:
            record[label] = str(value)
    return record


def record_to_dict(record: LabelRecord) -> Dict[str, Optional[str]]:
    """Convert a label record back to a string keyed dictionary."""
    return {label.value: value for label, value in record.items()}


def _parse_label(name: str, labels: Sequence[Label]) -> Optional[Label]:
    try:
        label = Label(name)
    except ValueError:
        return None
    return label if label in labels else None


# =============================================================================
# Matching
# =============================================================================

def match_label(label: Label, predicted: str, target: str) -> bool:
    """Compare a predicted value with the target using the label's comparator.

    Dates and totals are normalized; free text allows an edit distance of 20%
    of the longer value.
    """
    if label == Label.DATE:
        return compare_dates(predicted, target)
    if label == Label.TOTAL:
        return compare_numbers(predicted, target)
    max_edits = math.ceil(0.2 * max(len(predicted), len(target)))
    return compare_strings(predicted, target, max_edits)


@dataclass
class DocumentPrediction:
    """Predicted and ground truth fields for a single receipt."""
    document_id: str
    predicted: LabelRecord
    ground_truth: LabelRecord

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.document_id,
            "predicted": record_to_dict(self.predicted),
            "groundTruth": record_to_dict(self.ground_truth),
        }


@dataclass
class MissedEntry:
    """A label whose prediction was not a true positive."""
    document_id: str
    label: Label
    ground_truth: Optional[str]
    predicted: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.document_id,
            "label": self.label.value,
            "groundTruth": self.ground_truth,
            "predicted": self.predicted,
        }


def score_document(prediction: DocumentPrediction) -> Score:
    """Score one receipt; scores of several receipts can be summed."""
    return compute_counts([prediction.predicted], [prediction.ground_truth], match_label)


def find_missed(
    predictions: Sequence[DocumentPrediction],
    labels: Sequence[Label] = KNOWN_LABELS
) -> List[MissedEntry]:
    """List every label that was missed, spurious or wrong.

    Args:
        predictions: Per-document predictions
        labels: Labels to inspect

    Returns:
        MissedEntry for each (document, label) that is not a true positive,
        skipping labels absent from both sides
    """
    missed = []

    for prediction in predictions:
        for label in labels:
            target = prediction.ground_truth.get(label)
            predicted = prediction.predicted.get(label)

            if not target and not predicted:
                continue
            if target and predicted and match_label(label, predicted, target):
                continue

            missed.append(MissedEntry(
                document_id=prediction.document_id,
                label=label,
                ground_truth=target,
                predicted=predicted,
            ))

    return missed


# =============================================================================
# Evaluation
# =============================================================================

@dataclass
class LabelMetrics:
    """Metrics restricted to a single label."""
    label: Label
    metrics: Metrics
    score: Score

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label.value, **self.metrics.to_dict()}


@dataclass
class Evaluation:
    """Aggregated and per-label results of an evaluation run."""
    meta: Dict[str, Any]
    score: Score
    aggregated: Metrics
    by_label: List[LabelMetrics] = field(default_factory=list)
    missed: List[MissedEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the report dictionary."""
        return {
            "meta": self.meta,
            "counts": score_as_dict(self.score),
            "aggregated": self.aggregated.to_dict(),
            "by_label": [entry.to_dict() for entry in self.by_label],
            "missed": [entry.to_dict() for entry in self.missed],
        }


def evaluate(
    predictions: Sequence[DocumentPrediction],
    meta: Optional[Dict[str, Any]] = None,
    labels: Sequence[Label] = KNOWN_LABELS
) -> Evaluation:
    """Evaluate predictions for a set of receipts.

    Args:
        predictions: Per-document predictions with ground truth
        meta: Free-form run metadata copied into the report
        labels: Labels for the per-label breakdown and missed list

    Returns:
        Evaluation with aggregated metrics, per-label metrics and misses
    """
    predicted = [p.predicted for p in predictions]
    targets = [p.ground_truth for p in predictions]

    score = compute_counts(predicted, targets, match_label)

    by_label = []
    for label in labels:
        label_score = compute_counts(
            filter_label(predicted, label),
            filter_label(targets, label),
            match_label,
        )
        by_label.append(LabelMetrics(label=label, metrics=label_score.to_metrics(), score=label_score))

    return Evaluation(
        meta=dict(meta or {}),
        score=score,
        aggregated=score.to_metrics(),
        by_label=by_label,
        missed=find_missed(predictions, labels),
    )
