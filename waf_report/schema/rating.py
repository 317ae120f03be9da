"""Rating rules - score thresholds, tier sentences, and gauge positions.

Implements the rating scale used throughout the executive summary:
- Critical:  score < 33
- Moderate:  33 <= score <= 66
- Excellent: score >= 67
"""

from .models import RatingTier


CRITICAL_BELOW = 33
EXCELLENT_FROM = 67

# Gauge calibration for the stock template: 0-100 score -> points from the
# left edge of the slide.
THRESHOLD_SCALE = 2.47
THRESHOLD_OFFSET = 56.0

RATING_DESCRIPTIONS = {
    RatingTier.CRITICAL: (
        "The workload has critical gaps against the Well-Architected "
        "Framework. Prioritise the recommendations below before scaling "
        "further."
    ),
    RatingTier.MODERATE: (
        "The workload follows some Well-Architected practices, but there "
        "is meaningful room for improvement across the pillars reviewed."
    ),
    RatingTier.EXCELLENT: (
        "The workload is well aligned with the Well-Architected Framework. "
        "Keep reviewing it as requirements and services evolve."
    ),
}


def classify(score: int) -> RatingTier:
    """Map a 0-100 score to its rating tier.

    Boundaries: 32 -> Critical, 33 -> Moderate, 66 -> Moderate,
    67 -> Excellent.
    """
    if isinstance(score, bool) or not isinstance(score, int):
        raise TypeError(f"Score must be an int, got {type(score).__name__}")
    if score < CRITICAL_BELOW:
        return RatingTier.CRITICAL
    if score < EXCELLENT_FROM:
        return RatingTier.MODERATE
    return RatingTier.EXCELLENT


def rating_description(score: int) -> str:
    """Return the fixed sentence describing the tier of ``score``."""
    return RATING_DESCRIPTIONS[classify(score)]


def threshold_position(score: float, scale: float = THRESHOLD_SCALE,
                       offset: float = THRESHOLD_OFFSET) -> float:
    """Horizontal gauge marker position, in points, for a score.

    ``threshold_position(50) == 179.5``
    """
    return score * scale + offset
