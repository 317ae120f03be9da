"""Well-Architected report builder - assessment export to executive summary deck."""

__version__ = "0.1.0"
