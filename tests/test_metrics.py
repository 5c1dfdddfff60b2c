import pytest

from receipt_eval.evaluation.metrics import (
    EPSILON,
    Score,
    compute_counts,
    compute_f1_score,
    compute_metrics,
    compute_precision,
    compute_recall,
    filter_label,
    score_as_dict,
)


def case_insensitive(label, predicted, target):
    return predicted.lower() == target.lower()


class TestComputeCounts:

    def test_all_correct(self):
        predictions = [{"A": "x", "B": "y"}, {"A": "z"}]
        targets = [{"A": "x", "B": "y"}, {"A": "z"}]

        assert compute_counts(predictions, targets) == Score(3, 0, 0)

    def test_mismatch_counts_as_false_positive_and_false_negative(self):
        assert compute_counts([{"A": "x"}], [{"A": "y"}]) == Score(0, 1, 1)

    def test_missing_prediction_is_false_negative(self):
        assert compute_counts([{"A": None}], [{"A": "y"}]) == Score(0, 0, 1)
        assert compute_counts([{}], [{"A": "y"}]) == Score(0, 0, 1)

    def test_spurious_prediction_is_false_positive(self):
        assert compute_counts([{"A": "x"}], [{"A": None}]) == Score(0, 1, 0)

    def test_absent_on_both_sides_is_not_counted(self):
        assert compute_counts([{"A": None}], [{"A": None}]) == Score(0, 0, 0)

    def test_empty_strings_are_absent(self):
        assert compute_counts([{"A": ""}], [{"A": "y"}]) == Score(0, 0, 1)
        assert compute_counts([{"A": ""}], [{"A": ""}]) == Score(0, 0, 0)

    def test_only_target_labels_are_scored(self):
        assert compute_counts([{"A": "x", "B": "extra"}], [{"A": "x"}]) == Score(1, 0, 0)

    def test_matcher_is_used(self):
        assert compute_counts([{"A": "X"}], [{"A": "x"}], case_insensitive) == Score(1, 0, 0)
        assert compute_counts([{"A": "X"}], [{"A": "x"}]) == Score(0, 1, 1)

    def test_matcher_receives_label_prediction_and_target(self):
        calls = []

        def matcher(label, predicted, target):
            calls.append((label, predicted, target))
            return True

        compute_counts([{"A": "p"}], [{"A": "t"}], matcher)

        assert calls == [("A", "p", "t")]

    def test_length_mismatch_raises(self):
        with pytest.raises(ValueError, match="exact same length"):
            compute_counts([{"A": "x"}], [])

    def test_empty_input(self):
        assert compute_counts([], []) == Score()


class TestRatios:

    def test_perfect_scores(self):
        metrics = compute_metrics([{"A": "x"}], [{"A": "x"}])

        assert metrics.precision == pytest.approx(1.0)
        assert metrics.recall == pytest.approx(1.0)
        assert metrics.f1 == pytest.approx(1.0)

    def test_no_counts_give_zero(self):
        assert compute_precision([], []) == 0.0
        assert compute_recall([], []) == 0.0
        assert compute_f1_score([], []) == 0.0

    def test_mixed_counts(self):
        predictions = [{"A": "x", "B": "wrong"}, {"A": None, "B": "y"}]
        targets = [{"A": "x", "B": "y"}, {"A": "z", "B": "y"}]
        # TP 2, FP 1, FN 2

        assert compute_precision(predictions, targets) == pytest.approx(2 / 3)
        assert compute_recall(predictions, targets) == pytest.approx(2 / 4)
        assert compute_f1_score(predictions, targets) == pytest.approx(2 / (2 + 1.5))

    def test_single_mismatch_gives_zero_f1(self):
        assert compute_f1_score([{"A": "x"}], [{"A": "y"}]) == 0.0

    def test_f1_is_harmonic_mean(self):
        score = Score(true_positive=3, false_positive=1, false_negative=2)
        harmonic = 2 * score.precision * score.recall / (score.precision + score.recall)

        assert score.f1 == pytest.approx(harmonic)

    def test_epsilon_is_tiny(self):
        assert Score(1, 0, 0).precision == pytest.approx(1.0, abs=EPSILON * 10)


class TestScore:

    def test_addition_is_commutative_and_associative(self):
        a, b, c = Score(1, 2, 3), Score(4, 0, 1), Score(0, 5, 0)

        assert a + b == b + a
        assert (a + b) + c == a + (b + c)
        assert a + Score() == a

    def test_summed_document_scores_equal_full_count(self):
        predictions = [{"A": "x"}, {"A": "q"}, {"A": None}]
        targets = [{"A": "x"}, {"A": "y"}, {"A": "z"}]

        summed = Score()
        for p, t in zip(predictions, targets):
            summed = summed + compute_counts([p], [t])

        assert summed == compute_counts(predictions, targets)

    def test_as_dict(self):
        assert score_as_dict(Score(1, 2, 3)) == {
            "true_positive": 1,
            "false_positive": 2,
            "false_negative": 3,
        }

    def test_metrics_dict_key_order(self):
        assert list(Score(1, 0, 0).to_metrics().to_dict()) == ["f1", "recall", "precision"]


def test_filter_label():
    records = [{"A": "x", "B": "y"}, {"B": "z"}]

    assert filter_label(records, "A") == [{"A": "x"}, {}]
    assert filter_label(records, "B") == [{"B": "y"}, {"B": "z"}]
