"""End-to-end integration tests.

Exercises the full pipeline:
    assessment export -> decode -> summarize -> TemplateProjector -> QAValidator

Each test writes a synthetic export to disk, renders it onto the synthetic
template, and re-opens the saved deck to check what a reader would see.
"""

import re
from datetime import datetime

import pytest
from pptx import Presentation
from pptx.util import Pt

from waf_report.errors import DecodeError, GaugeSlotOverflowError
from waf_report.generator.pptx_builder import build_report_deck
from waf_report.processor.aggregate import summarize
from waf_report.processor.ingestion import load_descriptions, load_report
from waf_report.qa.validator import validate_presentation
from waf_report.schema import layout as labels
from waf_report.schema.models import AssessmentType, Presenter, RatingTier


FILENAME = re.compile(
    r"^Azure Well-Architected FastTrack Review - Executive Summary - "
    r"\d{4}-\d{2}-\d{2}-\d{4}\.pptx$"
)


def _shapes(slide) -> dict:
    return {shape.name: shape for shape in slide.shapes}


def _detail_slides(prs) -> list[dict]:
    return [_shapes(s) for s in prs.slides if labels.DETAIL_PILLAR in _shapes(s)]


@pytest.fixture
def presenter():
    return Presenter("Ada Lovelace", "Cloud Architect", "Contoso",
                     AssessmentType.FASTTRACK)


# ---------------------------------------------------------------------------
# Minimal report
# ---------------------------------------------------------------------------

class TestMinimalReport:
    def test_one_pillar_two_services(self, minimal_report_path, template_path,
                                     presenter, tmp_path):
        summary = summarize(load_report(minimal_report_path), load_descriptions())
        card = summary.scorecards[0]
        assert card.score == 80
        assert card.tier is RatingTier.EXCELLENT

        before = datetime.now().replace(second=0, microsecond=0)
        path = build_report_deck(template_path, summary, presenter, output_dir=tmp_path)
        after = datetime.now()

        assert FILENAME.match(path.name)
        stamp = datetime.strptime(path.stem.rsplit(" - ", 1)[1], "%Y-%m-%d-%H%M")
        assert before <= stamp <= after

        prs = Presentation(str(path))
        details = _detail_slides(prs)
        assert len(details) == 1
        detail = details[0]
        assert detail[labels.DETAIL_PILLAR].text_frame.text == "Reliability"
        assert detail[labels.DETAIL_PILLAR_SCORE].text_frame.text == "80"
        assert detail[labels.DETAIL_PILLAR_DESCRIPTION].text_frame.text.startswith("The ability")
        assert detail[labels.detail_resource_type(1)].text_frame.text == "SQL Database"
        assert detail[labels.detail_weight(1)].text_frame.text == "20"
        assert detail[labels.detail_recommendation(1)].text_frame.text == "Enable zone redundancy"
        assert detail[labels.detail_resource_type(2)].text_frame.text == "App Service"
        assert detail[labels.detail_weight(2)].text_frame.text == "10"
        for j in (3, 4, 5):
            assert labels.detail_resource_type(j) not in detail
            assert labels.detail_weight(j) not in detail
            assert labels.detail_recommendation(j) not in detail

        assert validate_presentation(path.read_bytes(), summary).passed


# ---------------------------------------------------------------------------
# Multi-pillar report
# ---------------------------------------------------------------------------

class TestMultiPillarReport:
    @pytest.fixture
    def report_path(self, make_report_lines, write_report):
        lines = make_report_lines(
            scores=[
                ("Reliability:Virtual Machines", "High", "60/100"),
                ("Reliability:App Service", "Low", "61/100"),
                ("Security:Key Vault", "High", "20/100"),
                ("Cost Optimization:Storage", "Low", "95/100"),
            ],
            findings=[
                ("Reliability:Virtual Machines", "Use availability zones", 30),
                ("Reliability:Virtual Machines", "Use managed disks", 35),
                ("Reliability:App Service", "Use deployment slots", 12),
                ("Security:Key Vault", "Enable purge protection", 50),
                ("Security:Key Vault", "Rotate keys", 50),
                ("Security:Storage", "Disable shared key access", 40),
                ("Cost Optimization:Storage", "Use lifecycle management", 5),
            ],
            overall="58/100",
        )
        return write_report(lines)

    def test_pillars_worst_first(self, report_path, template_path, presenter, tmp_path):
        summary = summarize(load_report(report_path), load_descriptions())
        assert [(c.pillar, c.score) for c in summary.scorecards] == [
            ("Security", 20),
            ("Reliability", 60),
            ("Cost Optimization", 95),
        ]

        path = build_report_deck(template_path, summary, presenter, output_dir=tmp_path)
        prs = Presentation(str(path))
        details = _detail_slides(prs)
        assert [d[labels.DETAIL_PILLAR].text_frame.text for d in details] == [
            "Security", "Reliability", "Cost Optimization",
        ]

        security = details[0]
        assert security[labels.detail_recommendation(1)].text_frame.text == \
            "Enable purge protection"
        assert security[labels.detail_resource_type(2)].text_frame.text == "Storage"

        reliability = details[1]
        assert reliability[labels.detail_recommendation(1)].text_frame.text == \
            "Use managed disks"
        assert reliability[labels.DETAIL_THRESHOLD].left == Pt(60 * 2.47 + 56)

        summary_slide = _shapes(prs.slides[7])
        assert summary_slide[labels.SUMMARY_SCORE_OVERALL].text_frame.text == "58"
        assert [summary_slide[labels.summary_pillar(i)].text_frame.text
                for i in (1, 2, 3)] == ["Security", "Reliability", "Cost Optimization"]
        gauges = sorted(name for name in summary_slide if re.search(r"_Gauge \d$", name))
        assert gauges == [
            "Summary - Critical_Gauge 1",
            "Summary - Excellent_Gauge 3",
            "Summary - Moderate_Gauge 2",
        ]
        assert validate_presentation(path.read_bytes(), summary).passed


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------

class TestFailures:
    def test_pillar_without_scores(self, make_report_lines, write_report):
        path = write_report(make_report_lines(
            scores=[("Security:Key Vault", "High", "20/100")],
            findings=[("Reliability:VM", "Use zones", 3)],
        ))
        with pytest.raises(DecodeError, match="Reliability"):
            summarize(load_report(path))

    def test_seven_pillars(self, make_report_lines, write_report, template_path,
                           presenter, tmp_path):
        pillars = [f"Pillar{n}" for n in range(7)]
        path = write_report(make_report_lines(
            scores=[(f"{p}:Svc", "Low", "50/100") for p in pillars],
            findings=[(f"{p}:Svc", "Do it", 1) for p in pillars],
        ))
        summary = summarize(load_report(path))
        with pytest.raises(GaugeSlotOverflowError):
            build_report_deck(template_path, summary, presenter, output_dir=tmp_path)
        assert list(tmp_path.glob("Azure*.pptx")) == []
