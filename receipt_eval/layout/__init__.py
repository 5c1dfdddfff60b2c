# Layout package
from .lines import (
    TextSegment,
    LINE_CENTER_TOLERANCE,
    LINE_BREAK_TOLERANCE,
    sort_to_reading_order,
    split_to_lines,
    lines_to_text,
)
