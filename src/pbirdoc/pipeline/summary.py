"""Report statistics for printers and the CLI."""

from collections import Counter

from pydantic import Field

from pbirdoc.models import CanonicalModel, Report


class ReportSummary(CanonicalModel):
    """Counts over a normalized report."""

    total_pages: int = 0
    hidden_pages: int = 0
    total_visuals: int = 0
    total_bookmarks: int = 0
    total_bindings: int = 0
    total_filters: int = Field(default=0, description="Report, page and visual filters")
    visual_types: dict[str, int] = Field(default_factory=dict, description="Canonical type -> count")


def summarize(report: Report) -> ReportSummary:
    """Compute summary statistics for a report."""
    visual_types: Counter = Counter()
    bindings = 0
    filters = len(report.filters)
    for page in report.pages:
        filters += len(page.filters)
        for visual in page.visuals:
            visual_types[visual.visual_type] += 1
            bindings += visual.bindings.total
            filters += len(visual.filters)

    return ReportSummary(
        total_pages=len(report.pages),
        hidden_pages=sum(1 for page in report.pages if page.is_hidden),
        total_visuals=report.visual_count,
        total_bookmarks=len(report.bookmarks),
        total_bindings=bindings,
        total_filters=filters,
        visual_types=dict(sorted(visual_types.items(), key=lambda item: (-item[1], item[0]))),
    )
