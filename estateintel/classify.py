from typing import Sequence, Tuple

# (min_score, label) pairs, highest cutoff first
Cutoffs = Sequence[Tuple[float, str]]


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, float(value)))


def bucket(score: float, cutoffs: Cutoffs, floor_label: str) -> str:
    """First label whose cutoff the score reaches, else `floor_label`."""
    for min_score, label in cutoffs:
        if score >= min_score:
            return label
    return floor_label


def bucket_below(score: float, cutoffs: Cutoffs, top_label: str) -> str:
    """Inverse of `bucket`: first label whose cutoff the score stays under.

    `cutoffs` are ordered lowest first, e.g. [(30, "Low"), (60, "Medium")].
    """
    for max_score, label in cutoffs:
        if score < max_score:
            return label
    return top_label


def rank(label: str, ordered_labels: Sequence[str]) -> int:
    """Position of a label in a low-to-high ordering."""
    return list(ordered_labels).index(label)


def round_to_increment(value: float, increment: float = 25.0) -> float:
    """Round to the nearest increment, halves away from zero."""
    scaled = abs(value) / increment
    whole = int(scaled)
    if scaled - whole >= 0.5:
        whole += 1
    return float(whole * increment) * (1 if value >= 0 else -1)
