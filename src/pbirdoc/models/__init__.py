"""Canonical models for PBIR report definitions.

Every record is a frozen Pydantic model. The normalization pipeline builds
each record exactly once, after all of its inputs are known, so consumers
never see a half-populated page or visual.

Model Hierarchy:
- Report → Pages → Visuals → FieldBindings / FilterDescriptors / Formatting
- Report → Bookmarks
- Report → FilterDescriptors (report scope)
"""

from .base import (
    BindingSource,
    CanonicalModel,
    DisplayOption,
    DocumentRole,
    FieldKind,
    FilterScope,
)
from .filter import (
    AndNode,
    BetweenNode,
    ComparisonNode,
    FilterDescriptor,
    FilterFieldRef,
    FilterNode,
    InNode,
    LeafNode,
    NotNode,
    OrNode,
)
from .page import Page
from .report import (
    Bookmark,
    ExtensionMeasure,
    NormalizationResult,
    ParseIssue,
    Report,
    ThemeRef,
)
from .visual import (
    UNKNOWN_TABLE,
    BackgroundStyle,
    BorderStyle,
    FieldBinding,
    FieldBindings,
    Formatting,
    Position,
    TitleStyle,
    Visual,
    VisualCalculation,
)

__all__ = [
    # Base types
    "BindingSource",
    "CanonicalModel",
    "DisplayOption",
    "DocumentRole",
    "FieldKind",
    "FilterScope",
    # Filters
    "AndNode",
    "BetweenNode",
    "ComparisonNode",
    "FilterDescriptor",
    "FilterFieldRef",
    "FilterNode",
    "InNode",
    "LeafNode",
    "NotNode",
    "OrNode",
    # Visual
    "UNKNOWN_TABLE",
    "BackgroundStyle",
    "BorderStyle",
    "FieldBinding",
    "FieldBindings",
    "Formatting",
    "Position",
    "TitleStyle",
    "Visual",
    "VisualCalculation",
    # Page
    "Page",
    # Report
    "Bookmark",
    "ExtensionMeasure",
    "NormalizationResult",
    "ParseIssue",
    "Report",
    "ThemeRef",
]
