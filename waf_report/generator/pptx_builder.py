"""Template projector - writes an assessment summary into the stock slide deck.

Opens the executive summary template, looks regions up by shape name
(``Cover - Your_Name``, ``Detail - Weight_3``, ...), and fills them from an
``AssessmentSummary``.  One detail slide is cloned from the prototype per
pillar; surplus slots and the unfilled prototype are removed at the end.

Usage::

    from waf_report.generator.pptx_builder import TemplateProjector, output_filename

    with TemplateProjector("template.pptx") as projector:
        projector.render(summary, presenter, now)
        projector.save(output_filename(presenter.assessment_type, now))
"""

import io
from copy import deepcopy
from datetime import datetime
from pathlib import Path
from typing import Any
from zipfile import BadZipFile

from lxml import etree
from pptx import Presentation
from pptx.exc import PackageNotFoundError
from pptx.oxml.ns import qn
from pptx.util import Pt

from waf_report.errors import GaugeSlotOverflowError, RegionLookupError, TemplateError
from waf_report.schema import layout as labels
from waf_report.schema.layout import TemplateLayout
from waf_report.schema.models import (
    AssessmentSummary,
    AssessmentType,
    CategoryScorecard,
    Presenter,
    RegionState,
)
from waf_report.schema.rating import threshold_position


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

OUTPUT_NAME = "Azure Well-Architected {assessment_type} Review - Executive Summary - {stamp}.pptx"
OUTPUT_STAMP_FORMAT = "%Y-%m-%d-%H%M"

_REL_ATTRS = (qn("r:embed"), qn("r:link"), qn("r:id"))
_TEXT_RUN_TAGS = (qn("a:r"), qn("a:br"), qn("a:fld"))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def output_filename(assessment_type: AssessmentType | str, now: datetime) -> str:
    """File name of the rendered deck, e.g. ``... - 2026-10-19-1405.pptx``."""
    if isinstance(assessment_type, AssessmentType):
        assessment_type = assessment_type.value
    return OUTPUT_NAME.format(assessment_type=assessment_type,
                              stamp=now.strftime(OUTPUT_STAMP_FORMAT))


def _set_text(shape, text: str) -> None:
    """Replace a shape's text, keeping the first run's character formatting."""
    if not shape.has_text_frame:
        raise TemplateError(f"Region {shape.name!r} cannot hold text")
    tf = shape.text_frame
    first = tf.paragraphs[0]
    for extra in tf.paragraphs[1:]:
        extra._p.getparent().remove(extra._p)

    runs = first.runs
    keep = runs[0]._r if runs else None
    for child in list(first._p):
        if child.tag in _TEXT_RUN_TAGS and child is not keep:
            first._p.remove(child)
    if runs:
        runs[0].text = text
    else:
        first.add_run().text = text


def _slide_contains(slide, token: str) -> bool:
    return any(
        shape.has_text_frame and token in shape.text_frame.text
        for shape in slide.shapes
    )


def _relink(element, source_part, target_part) -> None:
    """Point relationship ids inside a copied element at ``target_part``."""
    for node in element.iter(etree.Element):
        for attr in _REL_ATTRS:
            r_id = node.get(attr)
            if r_id is None:
                continue
            rel = source_part.rels[r_id]
            if rel.is_external:
                new_id = target_part.relate_to(rel.target_ref, rel.reltype,
                                               is_external=True)
            else:
                new_id = target_part.relate_to(rel.target_part, rel.reltype)
            node.set(attr, new_id)


# ---------------------------------------------------------------------------
# RegionIndex
# ---------------------------------------------------------------------------

class RegionIndex:
    """Label -> shape map for one slide, built once when the slide is first used."""

    def __init__(self, slide) -> None:
        self.slide = slide
        self._regions: dict[str, list] = {}
        for shape in slide.shapes:
            self.add(shape)

    def add(self, shape) -> None:
        self._regions.setdefault(shape.name, []).append(shape)

    def find(self, label: str):
        """Return the region called ``label``, or None when absent."""
        shapes = self._regions.get(label, [])
        if len(shapes) > 1:
            raise RegionLookupError(
                f"Label {label!r} is ambiguous on slide {self.slide.slide_id} "
                f"({len(shapes)} regions)"
            )
        return shapes[0] if shapes else None

    def get(self, label: str):
        shape = self.find(label)
        if shape is None:
            raise RegionLookupError(
                f"No region labelled {label!r} on slide {self.slide.slide_id}"
            )
        return shape

    def __contains__(self, label: str) -> bool:
        return label in self._regions

    def labels(self) -> list[str]:
        return list(self._regions)


# ---------------------------------------------------------------------------
# TemplateProjector
# ---------------------------------------------------------------------------

class TemplateProjector:
    """Projects an assessment summary onto the executive summary template.

    Parameters
    ----------
    template_path : str | Path
        The ``.pptx`` template with labelled regions.
    layout : TemplateLayout, optional
        Slide positions and template constants; defaults to the stock layout.

    The projector is a context manager: the template is loaded on entry and
    released on exit, including when rendering fails.
    """

    def __init__(self, template_path: str | Path,
                 layout: TemplateLayout | None = None) -> None:
        self.template_path = Path(template_path)
        self.layout = layout or TemplateLayout()
        self.prs = None
        self.anchors: dict[str, Any] = {}
        self._indexes: dict[int, RegionIndex] = {}
        self._region_states: dict[tuple[int, int], RegionState] = {}
        self._slide_states: dict[int, RegionState] = {}
        self._gauge_count = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def __enter__(self) -> "TemplateProjector":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    def open(self) -> None:
        """Load the template and resolve the four anchor slides."""
        if not self.template_path.is_file():
            raise TemplateError(f"Template not found: {self.template_path}")
        try:
            self.prs = Presentation(str(self.template_path))
        except (PackageNotFoundError, BadZipFile, KeyError) as exc:
            raise TemplateError(
                f"Could not open template {self.template_path}: {exc}"
            ) from exc

        slides = self.prs.slides
        positions = self.layout.anchor_positions()
        needed = max(positions.values())
        if len(slides) < needed:
            self.close()
            raise TemplateError(
                f"Template has {len(slides)} slide(s); layout needs {needed}"
            )
        self.anchors = {name: slides[pos - 1] for name, pos in positions.items()}
        for slide in slides:
            self._slide_states[slide.slide_id] = RegionState.PENDING

    def close(self) -> None:
        """Release the presentation and every index built over it."""
        self.prs = None
        self.anchors = {}
        self._indexes.clear()
        self._region_states.clear()
        self._slide_states.clear()
        self._gauge_count = 0

    @property
    def is_open(self) -> bool:
        return self.prs is not None

    def _require_open(self) -> None:
        if self.prs is None:
            raise TemplateError("Template is not open")

    @property
    def gauge_count(self) -> int:
        return self._gauge_count

    # ------------------------------------------------------------------
    # Region lookup and replacement
    # ------------------------------------------------------------------

    def regions(self, slide) -> RegionIndex:
        """The label index for ``slide`` (built on first use)."""
        index = self._indexes.get(slide.slide_id)
        if index is None:
            index = RegionIndex(slide)
            self._indexes[slide.slide_id] = index
        return index

    def region_state(self, slide, shape) -> RegionState:
        return self._region_states.get((slide.slide_id, shape.shape_id),
                                       RegionState.PENDING)

    def _mark(self, slide, shape, state: RegionState) -> None:
        self._region_states[(slide.slide_id, shape.shape_id)] = state

    def apply_replacements(self, slide, mapping: dict[str, Any],
                           gauge: str | None = None) -> None:
        """Write ``mapping`` values into the labelled regions of ``slide``.

        Threshold regions take the value as a score and move horizontally to
        the matching gauge position; every other region gets ``str(value)``.
        When ``gauge`` names a gauge icon, a copy of it is stamped into the
        next free gauge slot.
        """
        self._require_open()
        index = self.regions(slide)
        for label, value in mapping.items():
            shape = index.get(label)
            if labels.is_threshold_label(label):
                shape.left = Pt(threshold_position(
                    value, self.layout.threshold_scale, self.layout.threshold_offset,
                ))
            else:
                _set_text(shape, str(value))
            self._mark(slide, shape, RegionState.FILLED)
        self._slide_states[slide.slide_id] = RegionState.FILLED

        if gauge is not None:
            self.stamp_gauge(slide, gauge)

    def stamp_gauge(self, slide, label: str):
        """Copy the gauge icon ``label`` into the next vertical gauge slot."""
        self._require_open()
        tops = self.layout.gauge_tops
        if self._gauge_count >= len(tops):
            raise GaugeSlotOverflowError(
                f"All {len(tops)} gauge slots are used; cannot stamp {label!r}"
            )
        index = self.regions(slide)
        source = index.get(label)

        element = deepcopy(source._element)
        c_nv_pr = element.xpath("./*[1]/p:cNvPr")[0]
        c_nv_pr.set("id", str(slide.shapes._next_shape_id))
        c_nv_pr.set("name", f"{label} {self._gauge_count + 1}")
        slide.shapes._spTree.insert_element_before(element, "p:extLst")

        clone = next(s for s in slide.shapes if s._element is element)
        clone.left = Pt(self.layout.gauge_left)
        clone.top = Pt(tops[self._gauge_count])
        self._gauge_count += 1
        index.add(clone)
        self._mark(slide, clone, RegionState.FILLED)
        return clone

    def mark_unused(self, slide, region_labels: list[str]) -> int:
        """Flag regions for removal by ``clear_unused``; absent labels are skipped."""
        index = self.regions(slide)
        marked = 0
        for label in region_labels:
            shape = index.find(label)
            if shape is None:
                continue
            self._mark(slide, shape, RegionState.UNUSED)
            marked += 1
        return marked

    # ------------------------------------------------------------------
    # Slide operations
    # ------------------------------------------------------------------

    def duplicate_slide(self, source):
        """Clone ``source`` (shapes, background, relationships) at the end of the deck."""
        self._require_open()
        slide = self.prs.slides.add_slide(source.slide_layout)
        for shape in list(slide.shapes):
            shape._element.getparent().remove(shape._element)

        background = source._element.cSld.find(qn("p:bg"))
        if background is not None:
            slide._element.cSld.insert(0, deepcopy(background))

        for shape in source.shapes:
            element = deepcopy(shape._element)
            _relink(element, source.part, slide.part)
            slide.shapes._spTree.insert_element_before(element, "p:extLst")

        self._slide_states[slide.slide_id] = RegionState.PENDING
        return slide

    def move_slide_to_end(self, slide) -> None:
        self._require_open()
        sld_id_lst = self.prs.slides._sldIdLst
        sld_id = self._sld_id(slide)
        sld_id_lst.remove(sld_id)
        sld_id_lst.append(sld_id)

    def delete_slide(self, slide) -> None:
        self._require_open()
        sld_id = self._sld_id(slide)
        # slide_id resolves through the deck, so read it while the slide is still listed
        slide_id = slide.slide_id
        self.prs.part.drop_rel(sld_id.rId)
        self.prs.slides._sldIdLst.remove(sld_id)
        self._indexes.pop(slide_id, None)
        self._slide_states.pop(slide_id, None)

    def _sld_id(self, slide):
        for sld_id in self.prs.slides._sldIdLst:
            if self.prs.part.related_part(sld_id.rId) is slide.part:
                return sld_id
        raise TemplateError(f"Slide {slide.part.partname} is not part of the deck")

    # ------------------------------------------------------------------
    # Projection steps
    # ------------------------------------------------------------------

    def fill_cover(self, presenter: Presenter, now: datetime) -> None:
        self.apply_replacements(self.anchors["cover"], {
            labels.COVER_ASSESSMENT_TYPE: presenter.assessment_type.value,
            labels.COVER_NAME: presenter.name,
            labels.COVER_TITLE: presenter.title,
            labels.COVER_ORGANIZATION: presenter.organization,
            labels.COVER_REPORT_DATE: now.strftime(self.layout.report_date_format),
        })

    def fill_summary(self, summary: AssessmentSummary) -> None:
        """Overall score once, then one name/score/gauge row per pillar."""
        slide = self.anchors["summary"]
        self.apply_replacements(slide, {
            labels.SUMMARY_SCORE_OVERALL: summary.overall_score,
            labels.SUMMARY_RATING_DESCRIPTION: summary.overall_tier.description,
            labels.SUMMARY_THRESHOLD: summary.overall_score,
        })
        for i, card in enumerate(summary.scorecards, start=1):
            self.apply_replacements(
                slide,
                {labels.summary_pillar(i): card.pillar,
                 labels.summary_score(i): card.score},
                gauge=labels.summary_gauge(card.tier.label),
            )

    def add_detail_slide(self, card: CategoryScorecard):
        """Clone the detail prototype and fill it for one pillar."""
        slide = self.duplicate_slide(self.anchors["detail"])
        self.apply_replacements(slide, {
            labels.DETAIL_PILLAR: card.pillar,
            labels.DETAIL_PILLAR_DESCRIPTION: card.description,
            labels.DETAIL_PILLAR_SCORE: card.score,
            labels.DETAIL_THRESHOLD: card.score,
        })

        limit = self.layout.max_detail_entries
        entries = card.top_services(limit)
        for j, entry in enumerate(entries, start=1):
            self.apply_replacements(slide, {
                labels.detail_resource_type(j): entry.service,
                labels.detail_weight(j): entry.weight,
                labels.detail_recommendation(j): entry.recommendation,
            })
        for j in range(len(entries) + 1, limit + 1):
            self.mark_unused(slide, [
                labels.detail_resource_type(j),
                labels.detail_weight(j),
                labels.detail_recommendation(j),
            ])
        return slide

    def clear_unused(self) -> tuple[int, int]:
        """Delete unused slides and regions.

        A slide is dropped when it is flagged unused, or when it was never
        filled and still shows the pillar token.  A region is dropped when it
        is flagged unused, or still shows an indexed slot token such as
        ``[W3]`` or ``[Recommendation_4]``.

        A slide that received replacements is never dropped for its text,
        even when a filled value happens to contain the pillar token.

        Returns ``(slides_removed, regions_removed)``.
        """
        self._require_open()
        pattern = self.layout.unused_token_pattern()
        slides_removed = regions_removed = 0

        for slide in list(self.prs.slides):
            state = self._slide_states.get(slide.slide_id, RegionState.PENDING)
            if state is RegionState.UNUSED or (
                state is RegionState.PENDING
                and _slide_contains(slide, self.layout.pillar_token)
            ):
                self.delete_slide(slide)
                slides_removed += 1
                continue

            for shape in list(slide.shapes):
                unused = self.region_state(slide, shape) is RegionState.UNUSED
                if not unused and shape.has_text_frame:
                    unused = pattern.search(shape.text_frame.text) is not None
                if unused:
                    shape._element.getparent().remove(shape._element)
                    regions_removed += 1
            self._indexes.pop(slide.slide_id, None)

        return slides_removed, regions_removed

    def render(self, summary: AssessmentSummary, presenter: Presenter,
               now: datetime | None = None) -> None:
        """Run the whole projection: cover, summary, details, cleanup."""
        self._require_open()
        if summary.pillar_count > self.layout.max_pillars:
            raise GaugeSlotOverflowError(
                f"{summary.pillar_count} pillars found; the template has "
                f"gauge slots for {self.layout.max_pillars}"
            )
        now = now or datetime.now()

        self.fill_cover(presenter, now)
        self.fill_summary(summary)
        for card in summary.scorecards:
            self.add_detail_slide(card)

        self._slide_states[self.anchors["detail"].slide_id] = RegionState.UNUSED
        self.move_slide_to_end(self.anchors["closing"])
        self.clear_unused()

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def to_bytes(self) -> bytes:
        self._require_open()
        buf = io.BytesIO()
        self.prs.save(buf)
        return buf.getvalue()

    def save(self, path: str | Path) -> Path:
        self._require_open()
        path = Path(path)
        try:
            self.prs.save(str(path))
        except OSError as exc:
            raise TemplateError(f"Could not save {path}: {exc}") from exc
        return path


# ---------------------------------------------------------------------------
# Convenience function
# ---------------------------------------------------------------------------

def build_report_deck(template_path: str | Path, summary: AssessmentSummary,
                      presenter: Presenter, output_dir: str | Path = ".",
                      layout: TemplateLayout | None = None,
                      now: datetime | None = None) -> Path:
    """One-shot convenience: render the template and save it under ``output_dir``."""
    now = now or datetime.now()
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / output_filename(presenter.assessment_type, now)
    with TemplateProjector(template_path, layout) as projector:
        projector.render(summary, presenter, now)
        return projector.save(path)
