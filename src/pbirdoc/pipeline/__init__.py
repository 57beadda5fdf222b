"""Normalization pipeline stages for PBIR report definitions.

Stages, leaves first:
1. stage_classify - document path -> role + path-derived identifiers
2. stage_read - decode, classify and validate the whole document set
3. stage_literal - unwrap literal / solid / expr value wrappers
4. stage_fields - reconcile field bindings across query encodings
5. stage_filters - parse and render filter condition trees
6. stage_visual - canonical Visual records
7. stage_page - canonical Page records
8. stage_report - orchestration and report-level merge

Each stage is a set of pure functions over decoded JSON and can be used on
its own; ReportNormalizer runs them in order.
"""

from .lookups import AGGREGATION_FUNCTIONS, COMPARISON_KINDS, VISUAL_TYPE_NAMES
from .stage_classify import ClassifiedPath, classify_path
from .stage_fields import extract_field_bindings
from .stage_filters import parse_condition, parse_filter_config, render_condition
from .stage_literal import resolve_literal
from .stage_page import normalize_page
from .stage_read import DocumentSet, read_documents
from .stage_report import ReportNormalizer, normalize_report
from .stage_visual import canonical_visual_type, normalize_visual, resolve_title
from .summary import ReportSummary, summarize

__all__ = [
    # Lookup tables
    "AGGREGATION_FUNCTIONS",
    "COMPARISON_KINDS",
    "VISUAL_TYPE_NAMES",
    # Classification
    "ClassifiedPath",
    "classify_path",
    # Reading
    "DocumentSet",
    "read_documents",
    # Literals
    "resolve_literal",
    # Fields
    "extract_field_bindings",
    # Filters
    "parse_condition",
    "parse_filter_config",
    "render_condition",
    # Visuals
    "canonical_visual_type",
    "normalize_visual",
    "resolve_title",
    # Pages
    "normalize_page",
    # Report
    "ReportNormalizer",
    "normalize_report",
    # Summary
    "ReportSummary",
    "summarize",
]
