"""Assessment models - the contract between decoder, aggregator, and projector.

Defines the typed records decoded from an assessment export (findings and
score rows), the per-pillar scorecards derived from them, and the enums the
template projector uses to track which template regions it has consumed.
"""

from dataclasses import dataclass, field
from enum import Enum

from waf_report.errors import DecodeError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class RatingTier(Enum):
    """Qualitative rating bucket derived from a 0-100 score."""
    CRITICAL = "Critical"
    MODERATE = "Moderate"
    EXCELLENT = "Excellent"

    @property
    def label(self) -> str:
        return self.value

    @property
    def description(self) -> str:
        from .rating import RATING_DESCRIPTIONS
        return RATING_DESCRIPTIONS[self]


class AssessmentType(Enum):
    """Which review the export came from (drives cover text and file name)."""
    WELL_ARCHITECTED = "Well-Architected"
    FASTTRACK = "FastTrack"

    @classmethod
    def choices(cls) -> list[str]:
        return [t.value for t in cls]


class RegionState(Enum):
    """Lifecycle of a template region or slide during projection."""
    PENDING = "pending"    # Untouched template default
    FILLED = "filled"      # Received a value
    UNUSED = "unused"      # Surplus slot, removed by the cleanup pass


# ---------------------------------------------------------------------------
# Decoded rows
# ---------------------------------------------------------------------------

def split_category(category: str) -> tuple[str, str]:
    """Split a ``Pillar:Service`` composite into its two components.

    Anything after the first ``-`` is a subcategory suffix and is dropped
    before splitting on ``:``.

    Examples:
        "Reliability:Virtual Machines" -> ("Reliability", "Virtual Machines")
        "Security: Key Vault - Secrets" -> ("Security", "Key Vault")

    Raises:
        DecodeError: If the composite does not yield exactly two non-empty
            parts.
    """
    head = category.split("-")[0]
    parts = [p.strip() for p in head.split(":")]
    if len(parts) != 2 or not all(parts):
        raise DecodeError(
            f"Malformed category {category!r}: expected 'Pillar:Service'"
        )
    return parts[0], parts[1]


@dataclass(frozen=True)
class Finding:
    """One recommendation row from the findings table."""
    category: str            # Pillar:Service composite
    link_text: str           # Recommendation text
    weight: int              # Higher = more impactful
    context: str = ""
    link: str = ""
    priority: str = ""

    @property
    def pillar(self) -> str:
        return split_category(self.category)[0]

    @property
    def service(self) -> str:
        return split_category(self.category)[1]


@dataclass(frozen=True)
class ScoreRow:
    """One category/score pair from the scores table."""
    category: str
    criticality: str
    score: int               # 0-100


@dataclass(frozen=True)
class AssessmentReport:
    """Everything decoded from a single assessment export."""
    findings: tuple[Finding, ...]
    scores: tuple[ScoreRow, ...]
    overall_score: int

    def pillars(self) -> list[str]:
        """Distinct pillar names in first-encountered order."""
        seen: dict[str, None] = {}
        for finding in self.findings:
            seen.setdefault(finding.pillar, None)
        return list(seen)


# ---------------------------------------------------------------------------
# Derived aggregates
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ServiceRecommendation:
    """The representative (highest-weight) finding for one service."""
    service: str
    category: str
    weight: int
    recommendation: str
    link: str = ""


@dataclass(frozen=True)
class CategoryScorecard:
    """Per-pillar aggregate projected onto a detail slide."""
    pillar: str
    score: int
    tier: RatingTier
    description: str = ""
    services: tuple[ServiceRecommendation, ...] = ()  # Descending weight

    def top_services(self, limit: int = 5) -> list[ServiceRecommendation]:
        return list(self.services[:limit])


@dataclass(frozen=True)
class AssessmentSummary:
    """Overall score plus scorecards ordered worst-first."""
    overall_score: int
    overall_tier: RatingTier
    scorecards: tuple[CategoryScorecard, ...] = ()

    @property
    def pillar_count(self) -> int:
        return len(self.scorecards)


@dataclass(frozen=True)
class Presenter:
    """Who is presenting the review (cover slide fields)."""
    name: str
    title: str
    organization: str
    assessment_type: AssessmentType = field(default=AssessmentType.WELL_ARCHITECTED)
