"""Page Normalization - Assemble pages from page documents and their visuals."""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Optional

from pbirdoc.models import DisplayOption, FilterScope, Page, Visual

from .stage_filters import parse_filter_config
from .stage_literal import as_list, as_text


logger = logging.getLogger(__name__)


HIDDEN_VISIBILITY = "HiddenInViewMode"

# Older documents store the display option as an integer
DISPLAY_OPTION_CODES = {
    0: DisplayOption.FIT_TO_PAGE,
    1: DisplayOption.FIT_TO_WIDTH,
    2: DisplayOption.ACTUAL_SIZE,
}


@dataclass
class PageList:
    """What the page-list document (pages.json) says about pages."""

    order: list[str] = field(default_factory=list)
    display_names: dict[str, str] = field(default_factory=dict)
    active_page_id: Optional[str] = None

    def ordinal(self, page_id: str) -> Optional[int]:
        try:
            return self.order.index(page_id)
        except ValueError:
            return None


def parse_page_list(data: Any) -> PageList:
    """Read page order, display names and the active page from pages.json.

    Current documents carry `pageOrder`; older ones a `pages` list of
    `{name, displayName}` entries.
    """
    page_list = PageList()
    if not isinstance(data, dict):
        return page_list

    for entry in as_list(data.get("pages")):
        if isinstance(entry, dict) and as_text(entry.get("name")):
            page_list.order.append(entry["name"])
            if as_text(entry.get("displayName")):
                page_list.display_names[entry["name"]] = entry["displayName"]

    page_order = data.get("pageOrder")
    if isinstance(page_order, list):
        page_list.order = [page_id for page_id in page_order if isinstance(page_id, str)]

    page_list.active_page_id = as_text(data.get("activePageName"))
    return page_list


def resolve_display_option(value: Any) -> DisplayOption:
    if isinstance(value, int) and not isinstance(value, bool):
        return DISPLAY_OPTION_CODES.get(value, DisplayOption.UNKNOWN)
    if value is None:
        return DisplayOption.FIT_TO_PAGE
    if not isinstance(value, str):
        return DisplayOption.UNKNOWN
    try:
        return DisplayOption(value)
    except ValueError:
        return DisplayOption.UNKNOWN


def resolve_page_display_name(page_id: str, data: Any, page_list: PageList) -> str:
    """Page document displayName, then the page-list entry, then the id."""
    if isinstance(data, dict) and isinstance(data.get("displayName"), str) and data["displayName"].strip():
        return data["displayName"]
    return page_list.display_names.get(page_id) or page_id


def _dimension(value: Any) -> Optional[float]:
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0:
        try:
            number = float(value)
        except OverflowError:
            return None
        return number if math.isfinite(number) else None
    return None


def order_visuals(visuals: list[Visual]) -> list[Visual]:
    return sorted(visuals, key=lambda v: (v.display_name.lower(), v.id))


def normalize_page(
    page_id: str,
    data: Any,
    visuals: list[Visual],
    page_list: Optional[PageList] = None,
) -> Page:
    """Normalize one page.

    Args:
        page_id: Identifier from the page folder name.
        data: Decoded page.json document, or None when it is absent.
        visuals: The page's already normalized visuals.
        page_list: Parsed pages.json, if present.

    Returns:
        Page. When `data` is None the page is marked as synthesized.
    """
    page_list = page_list or PageList()
    synthesized = not isinstance(data, dict)
    body = data if isinstance(data, dict) else {}

    visibility = body.get("visibility")
    return Page(
        id=page_id,
        display_name=resolve_page_display_name(page_id, body, page_list),
        ordinal=page_list.ordinal(page_id),
        width=_dimension(body.get("width")),
        height=_dimension(body.get("height")),
        display_option=resolve_display_option(body.get("displayOption")),
        visibility=visibility if isinstance(visibility, str) else None,
        is_hidden=visibility == HIDDEN_VISIBILITY,
        page_type=body.get("type") if isinstance(body.get("type"), str) else None,
        visuals=order_visuals(visuals),
        filters=parse_filter_config(body.get("filterConfig"), FilterScope.PAGE),
        synthesized=synthesized,
    )


def order_pages(pages: list[Page]) -> list[Page]:
    """Listed pages in page-list order, then unlisted pages by id."""
    listed = sorted((p for p in pages if p.ordinal is not None), key=lambda p: p.ordinal)
    unlisted = sorted((p for p in pages if p.ordinal is None), key=lambda p: p.id)
    return listed + unlisted
