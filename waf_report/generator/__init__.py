"""Presentation generator package - template projection engine.

Consumes an AssessmentSummary and the executive summary template to produce
the finished PowerPoint file.

Modules:
    pptx_builder: Template loading, region replacement, slide cloning, cleanup
"""

from .pptx_builder import (
    RegionIndex,
    TemplateProjector,
    build_report_deck,
    output_filename,
)

__all__ = [
    "RegionIndex",
    "TemplateProjector",
    "build_report_deck",
    "output_filename",
]
