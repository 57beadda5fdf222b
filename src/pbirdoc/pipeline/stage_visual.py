"""Visual Normalization - Build one canonical Visual per visual container.

Combines type resolution, title resolution, field bindings, filters,
position and formatting. Each of the variant lookups below is an ordered
tuple of candidate shapes; the first one that yields a value wins.
"""

import logging
import math
from typing import Any, Callable, Optional, Union

from pbirdoc.config import settings
from pbirdoc.models import (
    BackgroundStyle,
    BorderStyle,
    FilterScope,
    Formatting,
    Position,
    TitleStyle,
    Visual,
)

from .lookups import (
    CUSTOM_VISUAL,
    CUSTOM_VISUAL_PREFIX,
    CUSTOM_VISUAL_TOKEN,
    TEXTBOX_TYPE,
    UNKNOWN_VISUAL,
    VISUAL_TYPE_NAMES,
)
from .stage_fields import extract_field_bindings
from .stage_filters import parse_filter_config, parse_query_filters
from .stage_literal import as_list, as_text, first_properties, resolve_literal


logger = logging.getLogger(__name__)


def _get(data: Any, *keys: str) -> Any:
    """Follow a chain of dict keys, returning None at the first miss."""
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


TYPE_SOURCES: tuple[tuple[str, Callable[[dict], Any]], ...] = (
    ("visual.visualType", lambda c: _get(c, "visual", "visualType")),
    ("visual.singleVisual.visualType", lambda c: _get(c, "visual", "singleVisual", "visualType")),
)


def raw_visual_type(container: Any) -> Optional[str]:
    """Return the first visualType found in TYPE_SOURCES."""
    for _name, lookup in TYPE_SOURCES:
        value = lookup(container)
        if isinstance(value, str) and value:
            return value
    return None


def is_custom_visual_type(raw_type: str) -> bool:
    """Custom visuals carry a package prefix or a long opaque identifier."""
    return (
        raw_type.startswith(CUSTOM_VISUAL_PREFIX)
        or CUSTOM_VISUAL_TOKEN in raw_type
        or len(raw_type) >= settings.custom_visual_min_length
    )


def canonical_visual_type(raw_type: Optional[str]) -> str:
    """Map a raw visualType to its canonical type tag.

    Unmapped built-in types pass through unchanged.
    """
    if not raw_type:
        return UNKNOWN_VISUAL
    if is_custom_visual_type(raw_type):
        return CUSTOM_VISUAL
    return VISUAL_TYPE_NAMES.get(raw_type, raw_type)


def _container_objects(container: dict) -> list[dict]:
    """visualContainerObjects, under `visual` first, then at the container root."""
    candidates = [_get(container, "visual", "visualContainerObjects"), container.get("visualContainerObjects")]
    return [objects for objects in candidates if isinstance(objects, dict)]


def _visual_objects(container: dict) -> list[dict]:
    """Legacy singleVisual.objects first, then visual.objects."""
    candidates = [_get(container, "visual", "singleVisual", "objects"), _get(container, "visual", "objects")]
    return [objects for objects in candidates if isinstance(objects, dict)]


def _title_text(objects: dict) -> Optional[str]:
    for entry in as_list(objects.get("title")):
        text = resolve_literal(_get(entry, "properties", "text"))
        if isinstance(text, str) and text.strip():
            return text.strip()
    return None


def _accept_title(text: Optional[str]) -> Optional[str]:
    if text and text != settings.title_placeholder:
        return text
    return None


def _container_title(container: dict, raw_type: Optional[str]) -> Optional[str]:
    for objects in _container_objects(container):
        title = _accept_title(_title_text(objects))
        if title:
            return title
    return None


def _legacy_title(container: dict, raw_type: Optional[str]) -> Optional[str]:
    for objects in _visual_objects(container):
        title = _accept_title(_title_text(objects))
        if title:
            return title
    return None


def _textbox_text(container: dict, raw_type: Optional[str]) -> Optional[str]:
    if raw_type != TEXTBOX_TYPE:
        return None
    for objects in _visual_objects(container):
        paragraphs = _get(first_properties(objects, "general"), "paragraphs")
        if not isinstance(paragraphs, list) or not paragraphs:
            continue
        runs = _get(paragraphs[0], "textRuns")
        if not isinstance(runs, list) or not runs:
            continue
        text = _get(runs[0], "value")
        if isinstance(text, str) and text.strip() and len(text) < settings.title_max_length:
            return text.strip()
    return None


TITLE_RULES: tuple[tuple[str, Callable[[dict, Optional[str]], Optional[str]]], ...] = (
    ("container_title", _container_title),
    ("legacy_title", _legacy_title),
    ("textbox_text", _textbox_text),
)


def synthesize_title(visual_type: str, raw_id: str) -> str:
    """Build a fallback name such as 'Card (44929275)'."""
    prefix = raw_id[: settings.id_prefix_length]
    if visual_type == UNKNOWN_VISUAL:
        return f"Visual ({prefix})"
    return f"{visual_type} ({prefix})"


def resolve_title(container: Any, visual_type: str, raw_id: str) -> str:
    """Resolve a visual's display name through TITLE_RULES.

    Args:
        container: Decoded visual.json document.
        visual_type: Canonical type tag.
        raw_id: Container name or path-derived id, used for the fallback.
    """
    if isinstance(container, dict):
        raw_type = raw_visual_type(container)
        for _name, rule in TITLE_RULES:
            title = rule(container, raw_type)
            if title:
                return title
    return synthesize_title(visual_type, raw_id)


def _number(value: Any, default: float = 0.0) -> float:
    """Coerce to a finite float, falling back to `default`."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return default
    try:
        number = float(value)
    except (ValueError, OverflowError):
        return default
    return number if math.isfinite(number) else default


def extract_position(position: Any) -> Position:
    """Build a Position, defaulting missing values to 0 and clamping negative sizes."""
    if not isinstance(position, dict):
        return Position()
    tab_order = position.get("tabOrder")
    angle = position.get("angle")
    return Position(
        x=_number(position.get("x")),
        y=_number(position.get("y")),
        z=_number(position.get("z")),
        width=max(0.0, _number(position.get("width"))),
        height=max(0.0, _number(position.get("height"))),
        tab_order=int(_number(tab_order)) if tab_order is not None else None,
        angle=_number(angle) if angle is not None else None,
    )


def _bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    return None


def _str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _scalar(value: Any) -> Optional[Union[float, str]]:
    """Keep numbers and strings; drop anything structured."""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = _number(value, default=math.nan)
        return None if math.isnan(number) else number
    return None


def _first_resolved(objects_list: list[dict], key: str, prop: str) -> Optional[Any]:
    for objects in objects_list:
        value = resolve_literal(_get(first_properties(objects, key), prop))
        if value is not None:
            return value
    return None


def extract_formatting(container: Any) -> Formatting:
    """Collect background, border, series colors and title style.

    Container-level objects take precedence over the visual's own objects.
    """
    if not isinstance(container, dict):
        return Formatting()
    sources = _container_objects(container) + _visual_objects(container)

    background = None
    color = _first_resolved(sources, "background", "color")
    transparency = _first_resolved(sources, "background", "transparency")
    if color is not None or transparency is not None:
        background = BackgroundStyle(color=_str(color), transparency=_scalar(transparency))

    border = None
    border_color = _first_resolved(sources, "border", "color")
    show = _first_resolved(sources, "border", "show")
    if border_color is not None or show is not None:
        border = BorderStyle(color=_str(border_color), show=_bool(show))

    colors = []
    for objects in _visual_objects(container):
        for key in ("dataColors", "dataPoint"):
            for entry in as_list(objects.get(key)):
                fill = resolve_literal(_get(entry, "properties", "fill"))
                if fill is not None:
                    colors.append(str(fill))

    title = None
    font_family = _first_resolved(sources, "title", "fontFamily")
    font_size = _first_resolved(sources, "title", "fontSize")
    font_color = _first_resolved(sources, "title", "fontColor")
    if font_family is not None or font_size is not None or font_color is not None:
        title = TitleStyle(font_family=_str(font_family), font_size=_scalar(font_size), font_color=_str(font_color))

    return Formatting(background=background, border=border, colors=colors, title=title)


def normalize_visual(
    visual_id: str,
    page_id: str,
    container: Any,
    mobile: Any = None,
) -> Visual:
    """Normalize one visual container document.

    Args:
        visual_id: Identifier from the visual's folder name.
        page_id: Identifier of the owning page.
        container: Decoded visual.json document.
        mobile: Decoded sibling mobile.json document, if any.

    Returns:
        A fully populated Visual.
    """
    if not isinstance(container, dict):
        container = {}

    raw_type = raw_visual_type(container)
    visual_type = canonical_visual_type(raw_type)
    name = as_text(container.get("name"))

    group_name = None
    visual_group = container.get("visualGroup")
    if isinstance(visual_group, dict):
        group_name = as_text(visual_group.get("displayName")) or name or visual_id

    display_name = group_name or resolve_title(container, visual_type, name or visual_id)

    mobile_position = None
    if isinstance(mobile, dict) and isinstance(mobile.get("position"), dict):
        mobile_position = extract_position(mobile["position"])

    filters = parse_filter_config(container.get("filterConfig"), FilterScope.VISUAL)
    filters += parse_query_filters(_get(container, "visual", "singleVisual", "prototypeQuery"))

    visual = Visual(
        id=visual_id,
        page_id=page_id,
        name=name,
        display_name=display_name,
        visual_type=visual_type,
        raw_type=raw_type,
        position=extract_position(container.get("position")),
        mobile_position=mobile_position,
        bindings=extract_field_bindings(container),
        filters=filters,
        formatting=extract_formatting(container),
        is_hidden=bool(container.get("isHidden", False)),
        group_name=group_name,
        parent_group_name=_str(container.get("parentGroupName")),
        how_created=_str(container.get("howCreated")),
    )
    logger.debug("Normalized visual %s/%s as %s", page_id, visual_id, visual_type)
    return visual
