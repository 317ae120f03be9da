"""QA validator - inspects a rendered deck against the summary it was built from.

Re-opens the rendered presentation and checks that the projection did what
it should: no template tokens left behind, one detail slide per pillar in
worst-first order, the overall score on the summary slide, and no detail
slide listing more services than the layout allows.

Usage::

    from waf_report.qa.validator import QAValidator

    validator = QAValidator(layout)
    result = validator.validate(pptx_bytes, summary)
    assert result.passed, result.summary()
"""

import io
from dataclasses import dataclass, field

from pptx import Presentation
from pptx.util import Pt

from waf_report.schema import layout as labels
from waf_report.schema.layout import TemplateLayout
from waf_report.schema.models import AssessmentSummary
from waf_report.schema.rating import threshold_position


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class Issue:
    """A single QA issue found during validation."""
    severity: str       # "error" or "warning"
    slide_index: int    # 0-based; -1 for presentation-level issues
    region: str         # "" for slide-level issues
    category: str       # e.g. "residual_token", "detail_count"
    message: str

    def __str__(self) -> str:
        loc = f"slide {self.slide_index}"
        if self.region:
            loc += f" / {self.region}"
        return f"[{self.severity.upper()}] {loc}: {self.message}"


@dataclass
class QAResult:
    """Aggregated result of QA validation."""
    issues: list[Issue] = field(default_factory=list)

    @property
    def errors(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0

    def add(self, severity: str, slide_index: int, region: str,
            category: str, message: str) -> None:
        self.issues.append(Issue(severity, slide_index, region, category, message))

    def summary(self) -> str:
        """One-line summary string."""
        status = "PASS" if self.passed else "FAIL"
        return (
            f"QA {status}: {len(self.errors)} error(s), "
            f"{len(self.warnings)} warning(s)"
        )

    def report(self) -> str:
        """Multi-line report of all issues."""
        lines = [self.summary()]
        for issue in self.issues:
            lines.append(f"  {issue}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _shapes_by_name(slide) -> dict:
    return {shape.name: shape for shape in slide.shapes}


def _text(shape) -> str:
    return shape.text_frame.text if shape.has_text_frame else ""


# ---------------------------------------------------------------------------
# QAValidator
# ---------------------------------------------------------------------------

class QAValidator:
    """Validates a rendered executive summary deck.

    Parameters
    ----------
    layout : TemplateLayout, optional
        The layout the deck was rendered with.
    """

    def __init__(self, layout: TemplateLayout | None = None) -> None:
        self.layout = layout or TemplateLayout()

    def validate(self, pptx_bytes: bytes, summary: AssessmentSummary) -> QAResult:
        """Run all validation checks on a rendered deck."""
        prs = Presentation(io.BytesIO(pptx_bytes))
        result = QAResult()
        slides = list(prs.slides)

        self._check_residual_tokens(slides, result)
        self._check_summary(slides, summary, result)
        self._check_details(slides, summary, result)
        return result

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _check_residual_tokens(self, slides: list, result: QAResult) -> None:
        pattern = self.layout.unused_token_pattern()
        for idx, slide in enumerate(slides):
            for shape in slide.shapes:
                text = _text(shape)
                if self.layout.pillar_token in text or pattern.search(text):
                    result.add("error", idx, shape.name, "residual_token",
                               f"Unfilled template text {text!r}")

    def _check_summary(self, slides: list, summary: AssessmentSummary,
                       result: QAResult) -> None:
        for idx, slide in enumerate(slides):
            shapes = _shapes_by_name(slide)
            score = shapes.get(labels.SUMMARY_SCORE_OVERALL)
            if score is None:
                continue
            if _text(score) != str(summary.overall_score):
                result.add("error", idx, labels.SUMMARY_SCORE_OVERALL, "summary",
                           f"Overall score shows {_text(score)!r}, "
                           f"expected {summary.overall_score}")
            marker = shapes.get(labels.SUMMARY_THRESHOLD)
            expected = Pt(threshold_position(summary.overall_score,
                                             self.layout.threshold_scale,
                                             self.layout.threshold_offset))
            if marker is not None and marker.left != expected:
                result.add("warning", idx, labels.SUMMARY_THRESHOLD, "summary",
                           f"Threshold marker at {marker.left} EMU, expected {expected}")
            return
        result.add("error", -1, "", "summary", "No summary slide found")

    def _check_details(self, slides: list, summary: AssessmentSummary,
                       result: QAResult) -> None:
        details = [
            (idx, _shapes_by_name(slide)) for idx, slide in enumerate(slides)
            if labels.DETAIL_PILLAR in _shapes_by_name(slide)
        ]
        if len(details) != summary.pillar_count:
            result.add("error", -1, "", "detail_count",
                       f"Expected {summary.pillar_count} detail slide(s), "
                       f"got {len(details)}")
            return

        limit = self.layout.max_detail_entries
        for (idx, shapes), card in zip(details, summary.scorecards):
            shown = _text(shapes[labels.DETAIL_PILLAR])
            if shown != card.pillar:
                result.add("warning", idx, labels.DETAIL_PILLAR, "detail_order",
                           f"Expected pillar {card.pillar!r}, found {shown!r}")
            expected = min(limit, len(card.services))
            listed = sum(
                1 for j in range(1, limit + 1)
                if labels.detail_resource_type(j) in shapes
            )
            if listed != expected:
                result.add("error", idx, "", "detail_entries",
                           f"{listed} service(s) listed, expected {expected}")


# ---------------------------------------------------------------------------
# Convenience function
# ---------------------------------------------------------------------------

def validate_presentation(pptx_bytes: bytes, summary: AssessmentSummary,
                          layout: TemplateLayout | None = None) -> QAResult:
    """One-shot convenience: validate a rendered deck."""
    return QAValidator(layout).validate(pptx_bytes, summary)
