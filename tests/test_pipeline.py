import json
import threading

import pytest

from receipt_eval.dataset import GROUND_TRUTH_FILE, Dataset
from receipt_eval.evaluation import Label, Score, evaluate
from receipt_eval.layout import TextSegment
from receipt_eval.models.base import CompletionModel
from receipt_eval.pipeline import predict_all, predict_document
from receipt_eval.prompting import SimplePromptStrategy


RECEIPTS = {
    "r1": ("ACME", {"TOTAL": ["12,40"], "COMPANY": ["ACME"]}),
    "r2": ("BAKERY", {"TOTAL": ["3.10"], "COMPANY": ["Bakery"]}),
    "r3": ("FAIL", {"TOTAL": ["1.00"]}),
}

ANSWERS = {
    "ACME": '{"total": "12.40", "company": "ACME"}',
    "BAKERY": '{"total": "3.01", "company": "Bakery"}',
}


class FakeCompletionModel(CompletionModel):
    """Answers by looking up the first word of the receipt in the prompt."""

    def __init__(self):
        self.prompts = []
        self.lock = threading.Lock()

    def get_model_name(self):
        return "fake"

    def complete(self, prompt):
        with self.lock:
            self.prompts.append(prompt)
        for word, answer in ANSWERS.items():
            if f"\n{word} " in prompt or f"\n{word}\n" in prompt:
                return answer
        raise RuntimeError("provider unavailable")


@pytest.fixture
def data_points(tmp_path):
    dataset = Dataset("custom", tmp_path / "custom")
    for document_id, (word, ground_truth) in RECEIPTS.items():
        path = tmp_path / "custom" / "eval" / document_id
        path.mkdir(parents=True)
        (path / GROUND_TRUTH_FILE).write_text(json.dumps(ground_truth), encoding="utf-8")

    points = dataset.list_data_points()
    for data_point in points:
        word = RECEIPTS[data_point.id][0]
        data_point.save_segments([
            TextSegment(x=0.1, y=0.1, width=0.2, height=0.02, text=word),
            TextSegment(x=0.1, y=0.5, width=0.2, height=0.02, text="SUMME"),
        ])
    return points


def test_predict_document(data_points):
    prediction = predict_document(data_points[0], SimplePromptStrategy(), FakeCompletionModel())

    assert prediction.document_id == "r1"
    assert prediction.predicted[Label.TOTAL] == "12.40"
    assert prediction.predicted[Label.DATE] is None
    assert prediction.ground_truth[Label.TOTAL] == "12,40"
    assert prediction.ground_truth[Label.ADDRESS] is None


def test_predict_all_collects_errors(data_points):
    run = predict_all(data_points, SimplePromptStrategy(), FakeCompletionModel(), concurrency=2)

    assert [p.document_id for p in run.predictions] == ["r1", "r2"]
    assert [document_id for document_id, _ in run.errors] == ["r3"]
    assert isinstance(run.errors[0][1], RuntimeError)
    assert run.completed == 2
    assert run.processed == 3


def test_predict_all_running_score_matches_evaluation(data_points):
    run = predict_all(data_points[:2], SimplePromptStrategy(), FakeCompletionModel(), concurrency=4)

    # r1: TOTAL and COMPANY correct; r2: TOTAL wrong, COMPANY correct
    assert run.score == Score(3, 1, 1)
    assert run.score == evaluate(run.predictions).score


def test_predict_all_reports_progress(data_points):
    seen = []

    predict_all(
        data_points,
        SimplePromptStrategy(),
        FakeCompletionModel(),
        concurrency=1,
        on_result=lambda data_point, run: seen.append((data_point.id, run.processed)),
    )

    assert sorted(document_id for document_id, _ in seen) == ["r1", "r2", "r3"]
    assert [processed for _, processed in seen] == [1, 2, 3]


def test_predict_all_empty():
    run = predict_all([], SimplePromptStrategy(), FakeCompletionModel())

    assert run.predictions == []
    assert run.errors == []
    assert run.score == Score()
