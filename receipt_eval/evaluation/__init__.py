# Evaluation package
from .matchers import (
    normalize_date,
    normalize_number,
    normalize_string,
    FieldComparator,
    DateComparator,
    NumberComparator,
    StringComparator,
    compare_dates,
    compare_numbers,
    compare_strings,
)
from .metrics import (
    Score,
    Metrics,
    compute_counts,
    compute_precision,
    compute_recall,
    compute_f1_score,
    compute_metrics,
    filter_label,
)
from .compare import (
    Label,
    KNOWN_LABELS,
    LabelRecord,
    DocumentPrediction,
    MissedEntry,
    LabelMetrics,
    Evaluation,
    ground_truth_to_record,
    prediction_to_record,
    record_to_dict,
    match_label,
    score_document,
    find_missed,
    evaluate,
)
