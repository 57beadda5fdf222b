"""pbirdoc - canonical models for PBIR report definitions."""

from pbirdoc.pipeline import ReportNormalizer, normalize_report, summarize

__version__ = "0.1.0"

__all__ = ["ReportNormalizer", "normalize_report", "summarize", "__version__"]
