"""Prediction of receipt fields over a dataset."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from .dataset import DataPoint
from .evaluation import (
    KNOWN_LABELS,
    DocumentPrediction,
    Label,
    Score,
    ground_truth_to_record,
    prediction_to_record,
    score_document,
)
from .models.base import CompletionModel
from .prompting import PromptStrategy


logger = logging.getLogger(__name__)


@dataclass
class PredictionRun:
    """Collected predictions and failures of a run over many data points."""
    predictions: List[DocumentPrediction] = field(default_factory=list)
    errors: List[Tuple[str, Exception]] = field(default_factory=list)
    score: Score = field(default_factory=Score)
    completed: int = 0

    @property
    def processed(self) -> int:
        """Number of data points finished so far, failed or not."""
        return self.completed + len(self.errors)


def predict_document(
    data_point: DataPoint,
    strategy: PromptStrategy,
    model: CompletionModel,
    labels: Sequence[Label] = KNOWN_LABELS
) -> DocumentPrediction:
    """Predict the fields of one receipt and pair them with its ground truth.

    Args:
        data_point: Receipt with OCR words and ground truth on disk
        strategy: Builds the prompt and parses the completion
        model: Completion provider
        labels: Labels kept in both records

    Returns:
        DocumentPrediction for the receipt
    """
    logger.info(f"Computing predictions for {data_point.id!r}")

    segments = data_point.load_segments()
    prompt = strategy.get_prompt(segments)
    completion = model.complete(prompt)
    parsed = strategy.parse_completion(completion)

    return DocumentPrediction(
        document_id=data_point.id,
        predicted=prediction_to_record(parsed, labels),
        ground_truth=ground_truth_to_record(data_point.load_ground_truth(), labels),
    )


def predict_all(
    data_points: Sequence[DataPoint],
    strategy: PromptStrategy,
    model: CompletionModel,
    concurrency: int = 16,
    labels: Sequence[Label] = KNOWN_LABELS,
    on_result: Optional[Callable[[DataPoint, PredictionRun], None]] = None
) -> PredictionRun:
    """Predict all receipts with a bounded pool of workers.

    Per-document scores are summed as they complete, so the running score
    does not depend on completion order. Predictions are returned in the
    order of data_points.

    Args:
        data_points: Receipts to process
        strategy: Prompt strategy
        model: Completion provider
        concurrency: Maximum number of in-flight provider calls
        labels: Labels to predict and score
        on_result: Called after each completed data point with the run so far

    Returns:
        PredictionRun with predictions, failures and the summed score
    """
    run = PredictionRun()
    completed = {}

    with ThreadPoolExecutor(max_workers=concurrency) as executor:
        futures = {
            executor.submit(predict_document, data_point, strategy, model, labels): data_point
            for data_point in data_points
        }

        for future in as_completed(futures):
            data_point = futures[future]
            try:
                prediction = future.result()
            except Exception as e:
                logger.error(f"Error predicting {data_point.id}: {e}")
                run.errors.append((data_point.id, e))
            else:
                completed[data_point.id] = prediction
                run.completed += 1
                run.score = run.score + score_document(prediction)

            if on_result is not None:
                on_result(data_point, run)

    run.predictions = [completed[dp.id] for dp in data_points if dp.id in completed]
    return run
