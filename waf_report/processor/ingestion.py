"""Report decoding module for the Well-Architected report builder.

Handles reading and decoding the assessment export, a semi-structured text
file with several sections stacked on top of each other:

- Summary block (overall score on line 4, third field, e.g. "54/100")
- Scores table, starting after the scores label line and ending two lines
  before the findings header (no header row of its own)
- Findings table, starting at a fixed column-header line and ending at the
  first "--,," separator line

Also loads the pillar description lookup table (CSV, UTF-8).
"""

import io
from pathlib import Path

import pandas as pd

from waf_report.errors import DecodeError, ReportNotFoundError
from waf_report.schema.models import AssessmentReport, Finding, ScoreRow, split_category


FINDINGS_HEADER = (
    "Category,Link-Text,Link,Priority,ReportingCategory,"
    "ReportingSubcategory,Weight,Context"
)
FINDINGS_END = "--,,"
SCORES_ANCHOR = "Category scores"
SCORES_COLUMNS = ["Category", "Criticality", "Score"]
SCORES_GAP = 2  # Lines between the end of the scores table and the findings header

OVERALL_SCORE_LINE = 3
OVERALL_SCORE_FIELD = 2

DESCRIPTION_LEVEL = "Survey Level Group"
DEFAULT_DESCRIPTIONS = Path(__file__).resolve().parent.parent / "data" / "category_descriptions.csv"

_QUOTES = "\"'"
_SCORE_SUFFIX = "/100"


# ---------------------------------------------------------------------------
# Value parsers
# ---------------------------------------------------------------------------

def parse_score(value) -> int:
    """Parse a score cell into an integer.

    Examples:
        "80/100"   -> 80
        '"54/100"' -> 54
        " 7 "      -> 7

    Raises:
        DecodeError: If nothing numeric is left after trimming.
    """
    s = str(value).strip().strip(_QUOTES).strip()
    if s.endswith(_SCORE_SUFFIX):
        s = s[: -len(_SCORE_SUFFIX)].strip()
    try:
        return int(s)
    except ValueError:
        raise DecodeError(f"Malformed score {value!r}") from None


def parse_weight(value) -> int:
    """Parse a finding weight ("20", "20.0") into an integer."""
    s = str(value).strip().strip(_QUOTES).strip()
    try:
        f = float(s)
    except ValueError:
        raise DecodeError(f"Malformed weight {value!r}") from None
    if f != int(f):
        raise DecodeError(f"Malformed weight {value!r}: not a whole number")
    return int(f)


def parse_overall_score(lines: list[str]) -> int:
    """Read the overall score from its fixed line/column position."""
    if len(lines) <= OVERALL_SCORE_LINE:
        raise DecodeError(
            f"Report has {len(lines)} line(s); overall score expected on "
            f"line {OVERALL_SCORE_LINE + 1}"
        )
    fields = lines[OVERALL_SCORE_LINE].split(",")
    if len(fields) <= OVERALL_SCORE_FIELD:
        raise DecodeError(
            f"Line {OVERALL_SCORE_LINE + 1} has no field "
            f"{OVERALL_SCORE_FIELD + 1}: {lines[OVERALL_SCORE_LINE]!r}"
        )
    raw = fields[OVERALL_SCORE_FIELD].strip().strip(_QUOTES).split("/")[0]
    return parse_score(raw)


# ---------------------------------------------------------------------------
# Encoding detection and line reading
# ---------------------------------------------------------------------------

def detect_encoding(path) -> str:
    """Detect whether a file is UTF-16 LE (with BOM), UTF-8 with BOM, or UTF-8."""
    with open(path, "rb") as f:
        raw = f.read(4)
    if raw[:2] == b"\xff\xfe":
        return "utf-16"
    if raw[:3] == b"\xef\xbb\xbf":
        return "utf-8-sig"
    return "utf-8"


def read_report_lines(path) -> list[str]:
    """Read the export into a list of lines (terminators removed).

    Raises:
        ReportNotFoundError: If ``path`` is not an existing file.
    """
    path = Path(path)
    if not path.is_file():
        raise ReportNotFoundError(f"Report file not found: {path}")
    encoding = detect_encoding(path)
    with open(path, encoding=encoding, newline="") as f:
        return f.read().splitlines()


# ---------------------------------------------------------------------------
# Section location
# ---------------------------------------------------------------------------

def _find_line(lines: list[str], needle: str, start: int = 0) -> int | None:
    for idx in range(start, len(lines)):
        if needle in lines[idx]:
            return idx
    return None


def locate_sections(lines: list[str]) -> dict[str, tuple[int, int]]:
    """Find the line spans of the scores and findings tables.

    Returns a dict with ``"scores"`` and ``"findings"`` keys, each a
    ``(start, end)`` half-open range. The findings range includes its
    header line.

    Raises:
        DecodeError: If a sentinel line is missing.
    """
    findings_start = _find_line(lines, FINDINGS_HEADER)
    if findings_start is None:
        raise DecodeError("Findings header not found in report")
    findings_end = _find_line(lines, FINDINGS_END, findings_start + 1)
    if findings_end is None:
        raise DecodeError(f"Findings end marker {FINDINGS_END!r} not found in report")

    anchor = _find_line(lines, SCORES_ANCHOR)
    if anchor is None or anchor >= findings_start:
        raise DecodeError(f"Scores label {SCORES_ANCHOR!r} not found before findings")
    scores_end = max(anchor + 1, findings_start - SCORES_GAP)

    return {
        "scores": (anchor + 1, scores_end),
        "findings": (findings_start, findings_end),
    }


def _read_section(lines: list[str], **kwargs) -> pd.DataFrame:
    """Decode a block of CSV lines into an all-string DataFrame.

    Separator rows (empty, or commas only) are dropped after parsing, so
    blank lines inside quoted multi-line fields survive.
    """
    if not any(line.strip() for line in lines):
        return pd.DataFrame()
    try:
        df = pd.read_csv(io.StringIO("\n".join(lines)), dtype=str,
                         keep_default_na=False, skipinitialspace=True, **kwargs)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise DecodeError(f"Could not decode report section: {exc}") from exc
    df.columns = [c.strip() if isinstance(c, str) else c for c in df.columns]
    df = df.fillna("")
    separator = (df.astype(str).replace(r"^\s*$", "", regex=True) == "").all(axis=1)
    return df[~separator].reset_index(drop=True)


# ---------------------------------------------------------------------------
# Section decoders
# ---------------------------------------------------------------------------

def decode_findings(lines: list[str]) -> list[Finding]:
    """Decode the findings table (header line first) into Findings."""
    df = _read_section(lines)
    missing = [c for c in FINDINGS_HEADER.split(",") if c not in df.columns]
    if missing:
        raise DecodeError(f"Findings table is missing column(s): {', '.join(missing)}")

    findings = []
    for row_no, record in enumerate(df.to_dict(orient="records"), start=1):
        category = str(record["Category"]).strip()
        try:
            split_category(category)
            weight = parse_weight(record["Weight"])
        except DecodeError as exc:
            raise DecodeError(f"Findings row {row_no}: {exc}") from exc
        findings.append(Finding(
            category=category,
            link_text=str(record["Link-Text"]).strip(),
            weight=weight,
            context=str(record["Context"]).strip(),
            link=str(record["Link"]).strip(),
            priority=str(record["Priority"]).strip(),
        ))
    return findings


def decode_scores(lines: list[str]) -> list[ScoreRow]:
    """Decode the header-less scores table into ScoreRows."""
    df = _read_section(lines, header=None)
    if df.empty:
        return []
    if len(df.columns) < len(SCORES_COLUMNS):
        raise DecodeError(
            f"Scores table has {len(df.columns)} column(s), "
            f"expected {len(SCORES_COLUMNS)}"
        )
    df = df.iloc[:, :len(SCORES_COLUMNS)]
    df.columns = SCORES_COLUMNS
    rows = []
    for row_no, (category, criticality, score) in enumerate(
            df[SCORES_COLUMNS].itertuples(index=False, name=None), start=1):
        try:
            value = parse_score(score)
        except DecodeError as exc:
            raise DecodeError(f"Scores row {row_no}: {exc}") from exc
        rows.append(ScoreRow(
            category=str(category).strip(),
            criticality=str(criticality).strip(),
            score=value,
        ))
    return rows


def decode_report(lines: list[str]) -> AssessmentReport:
    """Decode a whole export. Fails outright rather than partially succeeding."""
    sections = locate_sections(lines)
    f_start, f_end = sections["findings"]
    s_start, s_end = sections["scores"]
    return AssessmentReport(
        findings=tuple(decode_findings(lines[f_start:f_end])),
        scores=tuple(decode_scores(lines[s_start:s_end])),
        overall_score=parse_overall_score(lines),
    )


def load_report(path) -> AssessmentReport:
    """Read and decode an assessment export from disk."""
    return decode_report(read_report_lines(path))


# ---------------------------------------------------------------------------
# Pillar descriptions
# ---------------------------------------------------------------------------

def load_descriptions(path=None) -> pd.DataFrame:
    """Load the pillar description table (Pillar, Category, Description).

    Defaults to the table shipped with the package.
    """
    path = Path(path) if path is not None else DEFAULT_DESCRIPTIONS
    if not path.is_file():
        raise ReportNotFoundError(f"Description table not found: {path}")
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [c.strip() for c in df.columns]
    return df


def lookup_description(table: pd.DataFrame, pillar: str,
                       level: str = DESCRIPTION_LEVEL) -> str:
    """Return the description for ``pillar``, or "" when there is none."""
    if table is None or table.empty:
        return ""
    match = table[(table["Pillar"] == pillar) & (table["Category"] == level)]
    if match.empty:
        return ""
    return str(match["Description"].iloc[0]).strip()
