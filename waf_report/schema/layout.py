"""Template layout - every constant tied to the stock slide template.

Slide positions, region labels, gauge slots, and placeholder tokens live
here so a different template revision only needs a new YAML layout file
(see ``loader.py``) rather than code changes.
"""

import re
from dataclasses import dataclass, field
from typing import Any

from .rating import THRESHOLD_OFFSET, THRESHOLD_SCALE


# ---------------------------------------------------------------------------
# Region labels
# ---------------------------------------------------------------------------

COVER_ASSESSMENT_TYPE = "Cover - Assessment_Type"
COVER_NAME = "Cover - Your_Name"
COVER_TITLE = "Cover - Your_Title"
COVER_ORGANIZATION = "Cover - Your_Organization"
COVER_REPORT_DATE = "Cover - Report_Date"

SUMMARY_SCORE_OVERALL = "Summary - Score_Overall"
SUMMARY_RATING_DESCRIPTION = "Summary - Rating_Description"
SUMMARY_THRESHOLD = "Summary - Threshold"

DETAIL_PILLAR = "Detail - Pillar"
DETAIL_PILLAR_DESCRIPTION = "Detail - Pillar_Description"
DETAIL_PILLAR_SCORE = "Detail - Pillar_Score"
DETAIL_THRESHOLD = "Detail - Threshold"

THRESHOLD_MARKER = "Threshold"


def summary_pillar(i: int) -> str:
    return f"Summary - Pillar_{i}"


def summary_score(i: int) -> str:
    return f"Summary - Score_{i}"


def summary_gauge(tier_label: str) -> str:
    return f"Summary - {tier_label}_Gauge"


def detail_resource_type(j: int) -> str:
    return f"Detail - Resource_Type_{j}"


def detail_weight(j: int) -> str:
    return f"Detail - Weight_{j}"


def detail_recommendation(j: int) -> str:
    return f"Detail - Recommendation_{j}"


def is_threshold_label(label: str) -> bool:
    return THRESHOLD_MARKER in label


# ---------------------------------------------------------------------------
# TemplateLayout
# ---------------------------------------------------------------------------

_DEFAULT_GAUGE_TOPS = [151.0, 190.5, 230.0, 269.5, 309.0, 348.5]

_DEFAULT_UNUSED_TOKENS = [
    r"\[W_?\d+\]",
    r"\[Resource_Type_\d+\]",
    r"\[Recommendation_\d+\]",
]


@dataclass
class TemplateLayout:
    """Positions and tokens of the stock executive summary template.

    Slide positions are 1-based, matching how the template is described to
    authors (cover is slide 1, summary slide 8, ...).
    """
    cover_slide: int = 1
    summary_slide: int = 8
    detail_slide: int = 9
    closing_slide: int = 10

    # Gauge icons on the summary slide, in points
    gauge_left: float = 430.0
    gauge_tops: list[float] = field(default_factory=lambda: list(_DEFAULT_GAUGE_TOPS))

    threshold_scale: float = THRESHOLD_SCALE
    threshold_offset: float = THRESHOLD_OFFSET

    max_detail_entries: int = 5
    report_date_format: str = "%B %d, %Y"

    # Literal template text marking the unfilled detail prototype / slots
    pillar_token: str = "[Pillar]"
    unused_tokens: list[str] = field(default_factory=lambda: list(_DEFAULT_UNUSED_TOKENS))

    @property
    def max_pillars(self) -> int:
        return len(self.gauge_tops)

    def unused_token_pattern(self) -> re.Pattern:
        return re.compile("|".join(f"(?:{t})" for t in self.unused_tokens))

    def anchor_positions(self) -> dict[str, int]:
        return {
            "cover": self.cover_slide,
            "summary": self.summary_slide,
            "detail": self.detail_slide,
            "closing": self.closing_slide,
        }

    def to_dict(self) -> dict:
        return {
            "slides": self.anchor_positions(),
            "gauge": {"left": self.gauge_left, "tops": list(self.gauge_tops)},
            "threshold": {"scale": self.threshold_scale,
                          "offset": self.threshold_offset},
            "max_detail_entries": self.max_detail_entries,
            "report_date_format": self.report_date_format,
            "tokens": {"pillar": self.pillar_token,
                       "unused": list(self.unused_tokens)},
        }

    @classmethod
    def from_dict(cls, d: dict) -> "TemplateLayout":
        defaults = cls()
        slides: dict[str, Any] = d.get("slides", {})
        gauge: dict[str, Any] = d.get("gauge", {})
        threshold: dict[str, Any] = d.get("threshold", {})
        tokens: dict[str, Any] = d.get("tokens", {})
        return cls(
            cover_slide=slides.get("cover", defaults.cover_slide),
            summary_slide=slides.get("summary", defaults.summary_slide),
            detail_slide=slides.get("detail", defaults.detail_slide),
            closing_slide=slides.get("closing", defaults.closing_slide),
            gauge_left=gauge.get("left", defaults.gauge_left),
            gauge_tops=list(gauge.get("tops", defaults.gauge_tops)),
            threshold_scale=threshold.get("scale", defaults.threshold_scale),
            threshold_offset=threshold.get("offset", defaults.threshold_offset),
            max_detail_entries=d.get("max_detail_entries",
                                     defaults.max_detail_entries),
            report_date_format=d.get("report_date_format",
                                     defaults.report_date_format),
            pillar_token=tokens.get("pillar", defaults.pillar_token),
            unused_tokens=list(tokens.get("unused", defaults.unused_tokens)),
        )
