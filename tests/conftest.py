"""Shared fixtures: synthetic assessment exports and a synthetic slide template.

The template mirrors the stock executive summary deck: ten slides, with
labelled regions on the cover (1), summary (8), and detail prototype (9),
and bracketed placeholder text in every region the projector fills.
"""

import pytest
from pptx import Presentation
from pptx.enum.shapes import MSO_SHAPE
from pptx.util import Inches

from waf_report.processor.ingestion import FINDINGS_HEADER
from waf_report.schema import layout as labels


# ---------------------------------------------------------------------------
# Assessment export factories
# ---------------------------------------------------------------------------

def _report_lines(scores, findings, overall="80/100"):
    """Build export lines.

    scores:   [(category, criticality, "90/100"), ...]
    findings: [(category, link_text, weight), ...]
    """
    lines = [
        "Assessment Name,Contoso Web Platform,",
        "Assessment Type,Azure Well-Architected Review,",
        ",,",
        f'Overall score,,"{overall}"',
        ",,",
        "Category scores",
    ]
    for category, criticality, score in scores:
        lines.append(f'"{category}","{criticality}","{score}"')
    lines += [",,", ",,"]
    lines.append(FINDINGS_HEADER)
    for category, text, weight in findings:
        pillar, _, service = category.partition(":")
        lines.append(
            f'"{category}","{text}",https://learn.microsoft.com/azure/well-architected,'
            f'High,{pillar},{service.strip()},{weight},"Context for {text}, in detail"'
        )
    lines.append("--,,")
    lines.append("Generated by the assessment platform,,")
    return lines


@pytest.fixture
def make_report_lines():
    return _report_lines


@pytest.fixture
def minimal_lines():
    """One pillar, two services: weights 10/20, scores 90/70."""
    return _report_lines(
        scores=[
            ("Reliability:App Service", "Low", "90/100"),
            ("Reliability:SQL Database", "High", "70/100"),
        ],
        findings=[
            ("Reliability:App Service", "Use deployment slots", 10),
            ("Reliability:SQL Database", "Enable zone redundancy", 20),
        ],
        overall="80/100",
    )


@pytest.fixture
def write_report(tmp_path):
    """Write export lines to a CSV file and return its path."""
    def _write(lines, name="assessment.csv", encoding="utf-8"):
        path = tmp_path / name
        path.write_text("\r\n".join(lines) + "\r\n", encoding=encoding)
        return path
    return _write


@pytest.fixture
def minimal_report_path(write_report, minimal_lines):
    return write_report(minimal_lines)


# ---------------------------------------------------------------------------
# Template factory
# ---------------------------------------------------------------------------

def _region(slide, name, text, left=0.5, top=0.5):
    box = slide.shapes.add_textbox(Inches(left), Inches(top), Inches(3), Inches(0.4))
    box.name = name
    box.text_frame.text = text
    return box


def _marker(slide, name, left=0.5, top=6.5):
    shape = slide.shapes.add_shape(MSO_SHAPE.OVAL, Inches(left), Inches(top),
                                   Inches(0.2), Inches(0.2))
    shape.name = name
    return shape


def _build_template(path, detail_entries=5, summary_rows=6):
    prs = Presentation()
    prs.slide_width = Inches(13.333)
    prs.slide_height = Inches(7.5)
    blank = prs.slide_layouts[6]
    slides = [prs.slides.add_slide(blank) for _ in range(10)]

    cover = slides[0]
    for i, label in enumerate([
        labels.COVER_ASSESSMENT_TYPE, labels.COVER_NAME, labels.COVER_TITLE,
        labels.COVER_ORGANIZATION, labels.COVER_REPORT_DATE,
    ]):
        _region(cover, label, f"[{label.split(' - ')[1]}]", top=1 + i * 0.6)

    for idx in range(1, 7):
        _region(slides[idx], f"Body {idx}", f"Framework overview {idx}")

    summary = slides[7]
    _region(summary, labels.SUMMARY_SCORE_OVERALL, "[Score]")
    _region(summary, labels.SUMMARY_RATING_DESCRIPTION, "[Rating_Description]", top=1.0)
    _marker(summary, labels.SUMMARY_THRESHOLD)
    for i in range(1, summary_rows + 1):
        _region(summary, labels.summary_pillar(i), f"[Pillar_{i}]", top=1.5 + i * 0.5)
        _region(summary, labels.summary_score(i), f"[Score_{i}]", left=4, top=1.5 + i * 0.5)
    for n, tier in enumerate(["Critical", "Moderate", "Excellent"]):
        _marker(summary, labels.summary_gauge(tier), left=12 + n * 0.3, top=7.2)

    detail = slides[8]
    _region(detail, labels.DETAIL_PILLAR, "[Pillar]")
    _region(detail, labels.DETAIL_PILLAR_DESCRIPTION, "[Pillar_Description]", top=1.0)
    _region(detail, labels.DETAIL_PILLAR_SCORE, "[Score]", left=8)
    _marker(detail, labels.DETAIL_THRESHOLD)
    for j in range(1, detail_entries + 1):
        top = 1.5 + j * 0.7
        _region(detail, labels.detail_resource_type(j), f"[Resource_Type_{j}]", top=top)
        _region(detail, labels.detail_weight(j), f"[W{j}]", left=4, top=top)
        _region(detail, labels.detail_recommendation(j), f"[Recommendation_{j}]", left=5, top=top)

    _region(slides[9], "Closing", "Thank you")

    prs.save(str(path))
    return path


@pytest.fixture
def build_template(tmp_path):
    def _build(name="template.pptx", **kwargs):
        return _build_template(tmp_path / name, **kwargs)
    return _build


@pytest.fixture
def template_path(build_template):
    return build_template()
