"""Literal Resolution - Unwrap the value wrappers used by formatting objects.

Property values in visual and page objects arrive in one of several shapes:

    {"literal": {"value": 12}}                      older documents
    {"solid": {"color": "#FF0000"}}                 fill colors
    {"expr": {"Literal": {"Value": "'Sales'"}}}     current documents

The shapes are tried in the order of LITERAL_SHAPES.
"""

from typing import Any, Callable, Optional


QUOTE_CHARS = "'\""


def strip_quotes(value: Any) -> Any:
    """Remove one layer of surrounding quote characters from a string."""
    if not isinstance(value, str):
        return value
    if len(value) >= 2 and value[0] in QUOTE_CHARS and value[-1] == value[0]:
        return value[1:-1]
    return value


def _from_literal(wrapper: dict) -> Optional[Any]:
    literal = wrapper.get("literal")
    if isinstance(literal, dict) and "value" in literal:
        return literal["value"]
    return None


def _from_solid(wrapper: dict) -> Optional[Any]:
    solid = wrapper.get("solid")
    if isinstance(solid, dict) and "color" in solid:
        color = solid["color"]
        # current documents nest another wrapper inside solid.color
        if isinstance(color, dict):
            return resolve_literal(color)
        return color
    return None


def _from_expr(wrapper: dict) -> Optional[Any]:
    expr = wrapper.get("expr")
    if isinstance(expr, dict):
        literal = expr.get("Literal")
        if isinstance(literal, dict) and "Value" in literal:
            return strip_quotes(literal["Value"])
    return None


LITERAL_SHAPES: tuple[tuple[str, Callable[[dict], Optional[Any]]], ...] = (
    ("literal", _from_literal),
    ("solid", _from_solid),
    ("expr", _from_expr),
)


def resolve_literal(wrapper: Any) -> Optional[Any]:
    """Extract the scalar carried by a property wrapper.

    Args:
        wrapper: A property value of unknown shape.

    Returns:
        The first value produced by LITERAL_SHAPES, or None if no shape matches.
    """
    if not isinstance(wrapper, dict):
        return None
    for _name, extract in LITERAL_SHAPES:
        value = extract(wrapper)
        if value is not None:
            return value
    return None


def first_properties(objects: Any, key: str) -> Optional[dict]:
    """Return the `properties` map of the first entry of `objects[key]`."""
    if not isinstance(objects, dict):
        return None
    entries = objects.get(key)
    if not isinstance(entries, list):
        return None
    for entry in entries:
        if isinstance(entry, dict) and isinstance(entry.get("properties"), dict):
            return entry["properties"]
    return None


def resolve_property(objects: Any, key: str, prop: str) -> Optional[Any]:
    """Resolve `objects[key][...].properties[prop]` to a scalar."""
    properties = first_properties(objects, key)
    if properties is None:
        return None
    return resolve_literal(properties.get(prop))


def as_list(value: Any) -> list:
    """Return `value` if it is a list, else an empty list."""
    return value if isinstance(value, list) else []


def as_text(value: Any) -> Optional[str]:
    """Return `value` if it is a non-empty string, else None."""
    return value if isinstance(value, str) and value else None
