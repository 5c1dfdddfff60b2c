"""Reading order and line grouping for OCR word boxes."""

from dataclasses import dataclass
from typing import List, Sequence, TypeVar, Protocol


# A segment belongs to the top-most segment's line when the distance between
# their vertical centres is below this fraction of the top-most height.
LINE_CENTER_TOLERANCE = 0.33

# Fraction of the previous segment's width / height used to detect a line break.
LINE_BREAK_TOLERANCE = 0.9


class Box(Protocol):
    """Anything with a page-fraction bounding box."""
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class TextSegment:
    """One recognized word with its bounding box.

    All geometry is expressed as a fraction (0-1) of the page dimensions.
    """
    x: float
    y: float
    width: float
    height: float
    text: str


T = TypeVar("T", bound=Box)


def _pick_next(pool: List[T]) -> int:
    """Return the pool index of the next segment in reading order."""
    assert pool, "cannot pick from an empty segment pool"

    # Top-most segment, first one wins on ties
    top = min(pool, key=lambda s: s.y)
    top_center = top.y + 0.5 * top.height

    # Segments sharing a line with the top-most one
    line = [
        i for i, s in enumerate(pool)
        if s is top or abs(s.y + 0.5 * s.height - top_center) < top.height * LINE_CENTER_TOLERANCE
    ]

    # Left-most within that line
    return min(line, key=lambda i: pool[i].x)


def sort_to_reading_order(segments: Sequence[T]) -> List[T]:
    """Sort segments top-to-bottom, left-to-right.

    The top-most line is recomputed after every pick, so segments that are
    slightly skewed still come out in the order a human would read them.

    Args:
        segments: Segments in any order

    Returns:
        A new list with the same segments in reading order
    """
    pool = list(segments)
    ordered: List[T] = []

    while pool:
        ordered.append(pool.pop(_pick_next(pool)))

    return ordered


def split_to_lines(segments: Sequence[T]) -> List[List[T]]:
    """Group reading-ordered segments into visual lines.

    A new line starts when a segment begins horizontally inside the span of
    the previous segment (a wrap) or when it sits clearly below it.

    Args:
        segments: Segments already in reading order

    Returns:
        List of lines, each a list of segments in their original order
    """
    lines: List[List[T]] = []

    for segment in segments:
        if not lines:
            lines.append([segment])
            continue

        prev = lines[-1][-1]

        wrapped = segment.x < prev.x + LINE_BREAK_TOLERANCE * prev.width
        below = segment.y > prev.y + LINE_BREAK_TOLERANCE * prev.height

        if wrapped or below:
            lines.append([segment])
        else:
            lines[-1].append(segment)

    return lines


def lines_to_text(lines: Sequence[Sequence[TextSegment]]) -> List[str]:
    """Join the words of each line with single spaces."""
    return [" ".join(segment.text for segment in line) for line in lines]
