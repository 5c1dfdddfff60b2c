"""Precision, recall and F1 over labelled field predictions."""

from dataclasses import dataclass, asdict
from typing import Callable, Dict, Hashable, List, Optional, Sequence


# Keeps the ratios defined (zero) when every count is zero
EPSILON = 1e-12

Record = Dict[Hashable, Optional[str]]
Matcher = Callable[[Hashable, str, str], bool]


@dataclass(frozen=True)
class Score:
    """True positive, false positive and false negative counts."""
    true_positive: int = 0
    false_positive: int = 0
    false_negative: int = 0

    def __add__(self, other: "Score") -> "Score":
        if not isinstance(other, Score):
            return NotImplemented
        return Score(
            true_positive=self.true_positive + other.true_positive,
            false_positive=self.false_positive + other.false_positive,
            false_negative=self.false_negative + other.false_negative,
        )

    @property
    def precision(self) -> float:
        return self.true_positive / (self.true_positive + self.false_positive + EPSILON)

    @property
    def recall(self) -> float:
        return self.true_positive / (self.true_positive + self.false_negative + EPSILON)

    @property
    def f1(self) -> float:
        errors = 0.5 * (self.false_positive + self.false_negative)
        return self.true_positive / (self.true_positive + errors + EPSILON)

    def to_metrics(self) -> "Metrics":
        return Metrics(precision=self.precision, recall=self.recall, f1=self.f1)


@dataclass(frozen=True)
class Metrics:
    """Ratios derived from a Score."""
    precision: float
    recall: float
    f1: float

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary in report key order."""
        return {"f1": self.f1, "recall": self.recall, "precision": self.precision}


def _exact_match(label: Hashable, predicted: str, target: str) -> bool:
    return predicted == target


def compute_counts(
    predictions: Sequence[Record],
    targets: Sequence[Record],
    matcher: Optional[Matcher] = None
) -> Score:
    """Count TP/FP/FN over index-aligned prediction and target records.

    Only labels present in the target record are scored. A wrong value is
    both a false positive (something incorrect was predicted) and a false
    negative (the correct value was missed).

    Args:
        predictions: Predicted label records, one per document
        targets: Ground truth label records, same order as predictions
        matcher: Called as matcher(label, predicted, target); defaults to
            exact string equality

    Returns:
        Score with the summed counts

    Raises:
        ValueError: If the sequences differ in length
    """
    if len(predictions) != len(targets):
        raise ValueError("predictions and targets must have the exact same length")

    matcher = matcher or _exact_match
    tp = fp = fn = 0

    for prediction, target in zip(predictions, targets):
        for label, target_value in target.items():
            predicted_value = prediction.get(label)

            if not predicted_value and not target_value:
                continue
            if not predicted_value:
                fn += 1
                continue
            if not target_value:
                fp += 1
                continue

            if matcher(label, predicted_value, target_value):
                tp += 1
            else:
                fp += 1
                fn += 1

    return Score(true_positive=tp, false_positive=fp, false_negative=fn)


def compute_precision(
    predictions: Sequence[Record],
    targets: Sequence[Record],
    matcher: Optional[Matcher] = None
) -> float:
    return compute_counts(predictions, targets, matcher).precision


def compute_recall(
    predictions: Sequence[Record],
    targets: Sequence[Record],
    matcher: Optional[Matcher] = None
) -> float:
    return compute_counts(predictions, targets, matcher).recall


def compute_f1_score(
    predictions: Sequence[Record],
    targets: Sequence[Record],
    matcher: Optional[Matcher] = None
) -> float:
    return compute_counts(predictions, targets, matcher).f1


def compute_metrics(
    predictions: Sequence[Record],
    targets: Sequence[Record],
    matcher: Optional[Matcher] = None
) -> Metrics:
    """Precision, recall and F1 from a single counting pass."""
    return compute_counts(predictions, targets, matcher).to_metrics()


def filter_label(records: Sequence[Record], label: Hashable) -> List[Record]:
    """Reduce each record to a single label for a per-label breakdown.

    Records without the label become empty and are not scored.
    """
    return [{label: record[label]} if label in record else {} for record in records]


def score_as_dict(score: Score) -> Dict[str, int]:
    """Convert a Score to a JSON friendly dictionary."""
    return asdict(score)
