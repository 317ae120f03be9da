"""Aggregation module - turns decoded rows into per-pillar scorecards.

Takes an ``AssessmentReport`` (from the ingestion module) and the pillar
description table, and produces the ``AssessmentSummary`` the template
projector consumes:

- pillar score = integer-truncated mean of every score row whose category
  mentions the pillar
- per service, the single highest-weight finding is its representative
  (ties resolved by file order)
- services ordered by descending weight; scorecards ordered by ascending
  score so the weakest pillar is presented first
"""

import pandas as pd

from waf_report.errors import DecodeError
from waf_report.schema.models import (
    AssessmentReport,
    AssessmentSummary,
    CategoryScorecard,
    ServiceRecommendation,
)
from waf_report.schema.rating import classify

from .ingestion import lookup_description


_FINDING_COLUMNS = ["Category", "Pillar", "Service", "Weight", "Recommendation", "Link"]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def truncated_mean(values: list[int]) -> int:
    """Integer mean of non-negative ``values``: [80, 81] -> 80."""
    if not values:
        raise ValueError("Cannot average an empty list")
    return sum(values) // len(values)


def findings_frame(report: AssessmentReport) -> pd.DataFrame:
    """One row per finding, with the composite category split out."""
    rows = [
        {
            "Category": f.category,
            "Pillar": f.pillar,
            "Service": f.service,
            "Weight": f.weight,
            "Recommendation": f.link_text,
            "Link": f.link,
        }
        for f in report.findings
    ]
    return pd.DataFrame(rows, columns=_FINDING_COLUMNS)


def pillar_score(report: AssessmentReport, pillar: str) -> int:
    """Average score of the score rows belonging to ``pillar``."""
    scores = [row.score for row in report.scores if pillar in row.category]
    if not scores:
        raise DecodeError(f"No scores found for pillar {pillar!r}")
    return truncated_mean(scores)


def top_recommendations(frame: pd.DataFrame, pillar: str) -> list[ServiceRecommendation]:
    """Representative finding per service of ``pillar``, by descending weight."""
    group = frame[frame["Pillar"] == pillar]
    ranked = (
        group.sort_values("Weight", ascending=False, kind="stable")
        .drop_duplicates(subset="Category", keep="first")
    )
    return [
        ServiceRecommendation(
            service=row["Service"],
            category=row["Category"],
            weight=int(row["Weight"]),
            recommendation=row["Recommendation"],
            link=row["Link"],
        )
        for row in ranked.to_dict(orient="records")
    ]


# ---------------------------------------------------------------------------
# Scorecards
# ---------------------------------------------------------------------------

def build_scorecards(report: AssessmentReport,
                     descriptions: pd.DataFrame | None = None) -> list[CategoryScorecard]:
    """Build one scorecard per pillar, ordered by ascending score."""
    frame = findings_frame(report)
    scorecards = []
    for pillar in report.pillars():
        score = pillar_score(report, pillar)
        scorecards.append(CategoryScorecard(
            pillar=pillar,
            score=score,
            tier=classify(score),
            description=lookup_description(descriptions, pillar),
            services=tuple(top_recommendations(frame, pillar)),
        ))
    # sorted() is stable, so equal scores keep first-seen pillar order
    return sorted(scorecards, key=lambda card: card.score)


def summarize(report: AssessmentReport,
              descriptions: pd.DataFrame | None = None) -> AssessmentSummary:
    """Compute everything the executive summary deck presents."""
    return AssessmentSummary(
        overall_score=report.overall_score,
        overall_tier=classify(report.overall_score),
        scorecards=tuple(build_scorecards(report, descriptions)),
    )
