"""CLI entry point for the Well-Architected report builder.

Orchestrates the full pipeline: report decoding, pillar aggregation,
template projection, and QA validation.

Usage::

    # Build the executive summary deck
    python -m waf_report.cli generate \\
        --report-file exports/contoso.csv \\
        --assessment-type Well-Architected \\
        --name "Ada Lovelace" --title "Cloud Architect" \\
        --organization Contoso

    # Show the computed scorecards without touching a template
    python -m waf_report.cli inspect --report-file exports/contoso.csv -v

    # Use a custom template and layout
    python -m waf_report.cli generate \\
        --report-file exports/contoso.csv \\
        --assessment-type FastTrack \\
        --name "Ada Lovelace" --title "Cloud Architect" \\
        --organization Contoso \\
        --template templates/custom.pptx --layout templates/custom.yaml
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path

from waf_report.errors import ReportError
from waf_report.generator.pptx_builder import TemplateProjector, output_filename
from waf_report.processor.aggregate import summarize
from waf_report.processor.ingestion import load_descriptions, load_report
from waf_report.qa.validator import QAValidator
from waf_report.schema.layout import TemplateLayout
from waf_report.schema.loader import load_layout, save_layout
from waf_report.schema.models import AssessmentType, Presenter


DEFAULT_TEMPLATE = "PnP_PowerPointReport_Template.pptx"


# ---------------------------------------------------------------------------
# Input loading
# ---------------------------------------------------------------------------

def _load_layout(args) -> TemplateLayout:
    """Load a TemplateLayout from --layout, or the stock layout."""
    path = getattr(args, "layout", None)
    if not path:
        return TemplateLayout()
    path = Path(path)
    if not path.exists():
        _error(f"Layout file not found: {path}")
    return load_layout(path)


def _load_summary(args):
    """Decode the report and aggregate it into an AssessmentSummary."""
    report_path = Path(args.report_file)
    if not report_path.is_file():
        _error(f"Report file not found: {report_path}")

    _info(f"Decoding {report_path}")
    report = load_report(report_path)
    _info(f"Decoded {len(report.findings)} finding(s), "
          f"{len(report.scores)} score row(s)")

    descriptions = load_descriptions(args.descriptions)
    summary = summarize(report, descriptions)
    _info(f"Overall score: {summary.overall_score} "
          f"({summary.overall_tier.label}), {summary.pillar_count} pillar(s)")
    return summary


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_generate(args):
    """Build the executive summary deck."""
    layout = _load_layout(args)
    summary = _load_summary(args)
    presenter = Presenter(
        name=args.name,
        title=args.title,
        organization=args.organization,
        assessment_type=AssessmentType(args.assessment_type),
    )
    now = datetime.now()

    template = Path(args.template)
    _info(f"Projecting onto template {template}")
    with TemplateProjector(template, layout) as projector:
        projector.render(summary, presenter, now)
        pptx_bytes = projector.to_bytes()

    if not args.skip_qa:
        _info("Running QA validation...")
        qa_result = QAValidator(layout).validate(pptx_bytes, summary)
        if qa_result.passed:
            _info(qa_result.summary())
        else:
            _warn(qa_result.summary())
            if args.verbose:
                print(qa_result.report(), file=sys.stderr)
    else:
        _info("QA validation skipped (--skip-qa)")

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output = output_dir / output_filename(presenter.assessment_type, now)
    output.write_bytes(pptx_bytes)
    _info(f"Written: {output} ({len(pptx_bytes):,} bytes)")
    return output


def cmd_inspect(args):
    """Show the scorecards computed from a report."""
    summary = _load_summary(args)

    print(f"Overall score: {summary.overall_score} ({summary.overall_tier.label})")
    print(f"Pillars:       {summary.pillar_count}")
    print()
    for card in summary.scorecards:
        print(f"  {card.score:3d}  {card.tier.label:<9}  {card.pillar}"
              f" - {len(card.services)} service(s)")
        if args.verbose:
            for entry in card.top_services():
                print(f"         [{entry.weight:>3}] {entry.service}: "
                      f"{entry.recommendation}")

    if args.dump_layout:
        save_layout(_load_layout(args), args.dump_layout)
        _info(f"Layout written to {args.dump_layout}")


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------

def _info(msg):
    print(f"  {msg}", file=sys.stderr)


def _warn(msg):
    print(f"  WARNING: {msg}", file=sys.stderr)


def _error(msg):
    print(f"  ERROR: {msg}", file=sys.stderr)
    sys.exit(1)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def build_parser():
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="waf-report",
        description="Build a Well-Architected executive summary deck from an "
                    "assessment export.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # ---- generate ----
    gen = subparsers.add_parser(
        "generate",
        help="Build the executive summary PPTX.",
    )
    _add_report_args(gen)
    gen.add_argument(
        "--assessment-type",
        required=True,
        choices=AssessmentType.choices(),
        help="Which review the export came from.",
    )
    gen.add_argument(
        "--name",
        required=True,
        help="Presenter name (cover slide).",
    )
    gen.add_argument(
        "--title",
        required=True,
        help="Presenter title (cover slide).",
    )
    gen.add_argument(
        "--organization",
        required=True,
        help="Presenter organization (cover slide).",
    )
    gen.add_argument(
        "--template",
        default=DEFAULT_TEMPLATE,
        help=f"Slide template (default: {DEFAULT_TEMPLATE}).",
    )
    gen.add_argument(
        "--output-dir",
        default=".",
        help="Directory for the rendered deck (default: current directory).",
    )
    gen.add_argument(
        "--skip-qa",
        action="store_true",
        default=False,
        help="Skip QA validation after rendering.",
    )
    gen.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="Show the full QA report when validation fails.",
    )
    gen.set_defaults(func=cmd_generate)

    # ---- inspect ----
    insp = subparsers.add_parser(
        "inspect",
        help="Show the scorecards computed from a report.",
    )
    _add_report_args(insp)
    insp.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="List the top services of each pillar.",
    )
    insp.add_argument(
        "--dump-layout",
        help="Write the effective template layout to this YAML file.",
    )
    insp.set_defaults(func=cmd_inspect)

    return parser


def _add_report_args(parser):
    """Add the report / lookup table / layout args to a subparser."""
    parser.add_argument(
        "--report-file",
        required=True,
        help="Assessment export (.csv).",
    )
    parser.add_argument(
        "--descriptions",
        help="Pillar description table (.csv). Defaults to the bundled table.",
    )
    parser.add_argument(
        "--layout",
        help="Template layout YAML overriding the stock layout.",
    )


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv=None):
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        args.func(args)
    except ReportError as exc:
        _error(str(exc))


if __name__ == "__main__":
    main()
