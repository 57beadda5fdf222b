"""Report-level canonical models and the normalization result."""

from typing import Any, Optional

from pydantic import Field

from .base import CanonicalModel
from .filter import FilterDescriptor
from .page import Page


class ThemeRef(CanonicalModel):
    """Themes referenced by the report's theme collection."""

    base_theme: Optional[str] = None
    custom_theme: Optional[str] = None


class ExtensionMeasure(CanonicalModel):
    """A report-level measure declared in reportExtensions.json."""

    table: str
    name: str
    expression: Optional[str] = None
    data_type: Optional[str] = None


class Bookmark(CanonicalModel):
    """A saved report state."""

    id: str = Field(..., description="Bookmark file name without '.bookmark.json'")
    display_name: str
    target_page_id: Optional[str] = Field(None, description="explorationState.activeSection")
    group: Optional[str] = Field(None, description="Display name of the bookmark group")


class Report(CanonicalModel):
    """
    Canonical report model.

    Created once per normalization run and owns every page and bookmark.
    """

    schema_version: Optional[str] = Field(None, description="version.json 'version'")
    schema_url: Optional[str] = Field(None, description="report.json '$schema'")
    theme: Optional[ThemeRef] = None
    filters: list[FilterDescriptor] = Field(default_factory=list, description="Report-level filters")
    custom_visuals: list[str] = Field(default_factory=list, description="Registered custom visual ids")
    extension_measures: list[ExtensionMeasure] = Field(default_factory=list)
    settings: dict[str, Any] = Field(default_factory=dict)
    active_page_id: Optional[str] = None

    pages: list[Page] = Field(default_factory=list)
    bookmarks: list[Bookmark] = Field(default_factory=list)

    def get_page(self, page_id: str) -> Optional[Page]:
        """Look up a page by its identifier."""
        for page in self.pages:
            if page.id == page_id:
                return page
        return None

    @property
    def visual_count(self) -> int:
        return sum(page.visual_count for page in self.pages)


class ParseIssue(CanonicalModel):
    """A per-document problem recorded during normalization."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


class NormalizationResult(CanonicalModel):
    """Output of one normalization run.

    `root_missing` is the only condition a caller may want to treat as fatal;
    every other problem is recorded in `errors` or `warnings`.
    """

    report: Report
    errors: list[ParseIssue] = Field(default_factory=list, description="Documents that failed to decode")
    warnings: list[ParseIssue] = Field(default_factory=list, description="Schema and identity warnings")
    root_missing: bool = False
    document_count: int = 0

    @property
    def ok(self) -> bool:
        """Check if the run finished with a report root and no errors."""
        return not self.root_missing and not self.errors
