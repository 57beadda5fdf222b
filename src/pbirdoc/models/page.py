"""Page-level canonical models."""

from typing import Optional

from pydantic import Field

from .base import CanonicalModel, DisplayOption
from .filter import FilterDescriptor
from .visual import Visual


class Page(CanonicalModel):
    """
    One page (tab) of a report.

    The identifier comes from the page folder name and is the key used to
    find the page's visuals among the flat document set.
    """

    id: str = Field(..., description="Page folder name")
    display_name: str
    ordinal: Optional[int] = Field(None, description="Position in the page-list order")

    width: Optional[float] = Field(None, ge=0.0, description="Declared canvas width")
    height: Optional[float] = Field(None, ge=0.0, description="Declared canvas height")
    display_option: DisplayOption = Field(default=DisplayOption.FIT_TO_PAGE)
    visibility: Optional[str] = Field(None, description="Raw visibility value, e.g. 'HiddenInViewMode'")
    is_hidden: bool = False
    page_type: Optional[str] = Field(None, description="e.g. 'Tooltip', 'Drillthrough'")

    visuals: list[Visual] = Field(default_factory=list)
    filters: list[FilterDescriptor] = Field(default_factory=list)

    synthesized: bool = Field(
        default=False,
        description="Built from visual documents alone because the page document was absent",
    )

    @property
    def visual_count(self) -> int:
        return len(self.visuals)

    def get_visual(self, visual_id: str) -> Optional[Visual]:
        """Look up a visual on this page by its identifier."""
        for visual in self.visuals:
            if visual.id == visual_id:
                return visual
        return None
