"""Assessment schema package - typed models and template layout.

Provides the contract between the report decoder, the aggregator, and the
template projector:

- models.py: Core dataclasses (Finding, ScoreRow, CategoryScorecard, etc.)
- rating.py: Score thresholds, tier sentences, gauge positions
- layout.py: Constants tied to the stock slide template
- loader.py: YAML serialization/deserialization of layouts
"""

from .layout import TemplateLayout
from .loader import load_layout, save_layout
from .models import (
    AssessmentReport,
    AssessmentSummary,
    AssessmentType,
    CategoryScorecard,
    Finding,
    Presenter,
    RatingTier,
    RegionState,
    ScoreRow,
    ServiceRecommendation,
    split_category,
)
from .rating import classify, rating_description, threshold_position

__all__ = [
    # Models
    "AssessmentReport",
    "AssessmentSummary",
    "AssessmentType",
    "CategoryScorecard",
    "Finding",
    "Presenter",
    "RatingTier",
    "RegionState",
    "ScoreRow",
    "ServiceRecommendation",
    "split_category",
    # Layout
    "TemplateLayout",
    "load_layout",
    "save_layout",
    # Rating
    "classify",
    "rating_description",
    "threshold_position",
]
