"""Report processor module for the Well-Architected report builder."""

from .ingestion import (
    decode_findings,
    decode_report,
    decode_scores,
    detect_encoding,
    load_descriptions,
    load_report,
    locate_sections,
    lookup_description,
    parse_overall_score,
    parse_score,
    parse_weight,
    read_report_lines,
    FINDINGS_HEADER,
)
from .aggregate import (
    build_scorecards,
    pillar_score,
    summarize,
    top_recommendations,
    truncated_mean,
)
