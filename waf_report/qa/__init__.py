"""QA validation package for the Well-Architected report builder.

Validates a rendered deck against the summary it was built from - checks
for leftover template tokens, detail slide count and order, summary score,
and per-slide service counts.
"""

from .validator import (
    Issue,
    QAResult,
    QAValidator,
    validate_presentation,
)

__all__ = [
    "Issue",
    "QAResult",
    "QAValidator",
    "validate_presentation",
]
