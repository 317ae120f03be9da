"""Exception types raised while turning an assessment export into a deck.

Every error is fatal for the run; the CLI reports it and exits non-zero.
"""


class ReportError(Exception):
    """Base class for all report builder failures."""


class ReportNotFoundError(ReportError, FileNotFoundError):
    """The assessment export does not exist."""


class DecodeError(ReportError, ValueError):
    """The assessment export could not be decoded."""


class RegionLookupError(ReportError, LookupError):
    """A labelled region does not exist (or is ambiguous) on a slide."""


class GaugeSlotOverflowError(RegionLookupError):
    """More gauges were stamped than the summary slide has slots for."""


class TemplateError(ReportError):
    """The slide template could not be opened, edited, or saved."""
