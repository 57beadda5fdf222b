"""Filter Interpretation - Parse filter condition trees and render them.

Filters appear in `filterConfig.filters` on reports, pages and visuals, and
as `Where` clauses of a legacy visual's prototypeQuery. Each condition is a
tree of Comparison / In / Between / And / Or / Not nodes. Shapes the
interpreter does not know are kept verbatim as Leaf nodes; rendering never
fails.
"""

import json
import logging
import re
from typing import Any, Callable, Optional

from pbirdoc.models import (
    AndNode,
    BetweenNode,
    ComparisonNode,
    FilterDescriptor,
    FilterFieldRef,
    FilterNode,
    FilterScope,
    InNode,
    LeafNode,
    NotNode,
    OrNode,
)

from .lookups import FILTER_TYPES, QUERY_FILTER_TYPE, comparison_name, filter_type_name
from .stage_fields import FieldRef, classify_field, source_aliases
from .stage_literal import as_list, as_text, strip_quotes


logger = logging.getLogger(__name__)

# Typed numeric literals: 10L (integer), 12.5D (double), 3M (decimal)
TYPED_NUMBER = re.compile(r"^(-?\d+(?:\.\d+)?)[LDM]$")


def _comparison(body: dict) -> FilterNode:
    return ComparisonNode(
        operator=comparison_name(body.get("ComparisonKind")),
        left=body.get("Left"),
        right=body.get("Right"),
    )


def _in(body: dict) -> FilterNode:
    return InNode(
        expressions=as_list(body.get("Expressions")),
        values=[row if isinstance(row, list) else [row] for row in as_list(body.get("Values"))],
    )


def _between(body: dict) -> FilterNode:
    return BetweenNode(
        expression=body.get("Expression"),
        lower=body.get("LowerBound"),
        upper=body.get("UpperBound"),
    )


def _and(body: dict) -> FilterNode:
    return AndNode(left=parse_condition(body.get("Left")), right=parse_condition(body.get("Right")))


def _or(body: dict) -> FilterNode:
    return OrNode(left=parse_condition(body.get("Left")), right=parse_condition(body.get("Right")))


def _not(body: dict) -> FilterNode:
    return NotNode(child=parse_condition(body.get("Expression")))


CONDITION_SHAPES: tuple[tuple[str, Callable[[dict], FilterNode]], ...] = (
    ("Comparison", _comparison),
    ("In", _in),
    ("Between", _between),
    ("And", _and),
    ("Or", _or),
    ("Not", _not),
)


def parse_condition(condition: Any) -> FilterNode:
    """Parse a condition expression into a FilterNode tree.

    Args:
        condition: A query condition, e.g. {"Comparison": {...}}.

    Returns:
        The parsed node. Unrecognized shapes become LeafNode(raw=condition).
    """
    if isinstance(condition, dict):
        for key, build in CONDITION_SHAPES:
            body = condition.get(key)
            if isinstance(body, dict):
                return build(body)
    return LeafNode(raw=condition)


def _dump(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def render_operand(expression: Any, aliases: Optional[dict[str, str]] = None) -> str:
    """Render an operand expression: literal values bare, fields as Table.Field."""
    if expression is None:
        return "null"
    if isinstance(expression, list):
        return ", ".join(render_operand(item, aliases) for item in expression)
    if not isinstance(expression, dict):
        return str(expression)

    literal = expression.get("Literal")
    if isinstance(literal, dict) and "Value" in literal:
        value = strip_quotes(literal["Value"])
        if isinstance(value, str):
            number = TYPED_NUMBER.match(value)
            if number:
                return number.group(1)
        return str(value)

    ref = classify_field(expression, aliases)
    if ref is not None:
        return _render_field(ref)
    return _dump(expression)


def _render_field(ref: FieldRef) -> str:
    name = f"{ref.table}.{ref.field}" if ref.field else ref.table
    if ref.aggregation:
        return f"{ref.aggregation}({name})"
    return name


def _render_row(row: list, aliases: Optional[dict[str, str]]) -> str:
    if len(row) == 1:
        return render_operand(row[0], aliases)
    return "(" + ", ".join(render_operand(item, aliases) for item in row) + ")"


def render_condition(node: FilterNode, aliases: Optional[dict[str, str]] = None) -> str:
    """Render a FilterNode tree as a deterministic, human-readable string.

    Examples:
        IN (A, B)
        BETWEEN 1 AND 5
        (IN (A, B) AND GreaterThan 10)
        NOT (Equal 0)
    """
    if isinstance(node, ComparisonNode):
        return f"{node.operator} {render_operand(node.right, aliases)}"
    if isinstance(node, InNode):
        return "IN (" + ", ".join(_render_row(row, aliases) for row in node.values) + ")"
    if isinstance(node, BetweenNode):
        return f"BETWEEN {render_operand(node.lower, aliases)} AND {render_operand(node.upper, aliases)}"
    if isinstance(node, AndNode):
        return f"({render_condition(node.left, aliases)} AND {render_condition(node.right, aliases)})"
    if isinstance(node, OrNode):
        return f"({render_condition(node.left, aliases)} OR {render_condition(node.right, aliases)})"
    if isinstance(node, NotNode):
        return f"NOT ({render_condition(node.child, aliases)})"
    if isinstance(node, LeafNode):
        return _dump(node.raw)
    return _dump(node)


def _field_ref(descriptor: Any, aliases: Optional[dict[str, str]] = None) -> Optional[FilterFieldRef]:
    ref = classify_field(descriptor, aliases)
    if ref is None:
        return None
    return FilterFieldRef(kind=ref.shape, table=ref.table, property_name=ref.field)


def _where_conditions(query: Any) -> list[FilterNode]:
    if not isinstance(query, dict):
        return []
    return [
        parse_condition(where.get("Condition"))
        for where in as_list(query.get("Where"))
        if isinstance(where, dict)
    ]


def _describe(conditions: list[FilterNode], aliases: dict[str, str]) -> str:
    return " AND ".join(render_condition(node, aliases) for node in conditions)


def parse_filter_descriptor(entry: Any, scope: FilterScope) -> Optional[FilterDescriptor]:
    """Parse one `filterConfig.filters` entry.

    Returns:
        FilterDescriptor, or None when the entry's type tag is not one of
        FILTER_TYPES.
    """
    if not isinstance(entry, dict):
        return None
    filter_type = entry.get("type")
    if not isinstance(filter_type, str) or filter_type not in FILTER_TYPES:
        logger.debug("Dropping %s filter %r with unsupported type %r", scope.value, entry.get("name"), filter_type)
        return None

    query = entry.get("filter")
    aliases = source_aliases(query)
    field = _field_ref(entry.get("field"))
    conditions = _where_conditions(query)

    description = _describe(conditions, aliases)
    if not description:
        description = filter_type_name(filter_type)
        if field is not None:
            description = f"{description} on {field.qualified_name}"

    name = as_text(entry.get("name"))
    ordinal = entry.get("ordinal")
    return FilterDescriptor(
        name=name,
        display_name=as_text(entry.get("displayName")) or name or "Unnamed Filter",
        filter_type=filter_type,
        scope=scope,
        field=field,
        conditions=conditions,
        description=description,
        is_hidden=bool(entry.get("isHiddenInViewMode", False)),
        is_locked=bool(entry.get("isLockedInViewMode", False)),
        ordinal=ordinal if isinstance(ordinal, int) and not isinstance(ordinal, bool) else None,
    )


def parse_filter_config(filter_config: Any, scope: FilterScope) -> list[FilterDescriptor]:
    """Parse every supported filter of a `filterConfig` object, in order."""
    if not isinstance(filter_config, dict):
        return []
    filters = []
    for entry in as_list(filter_config.get("filters")):
        descriptor = parse_filter_descriptor(entry, scope)
        if descriptor is not None:
            filters.append(descriptor)
    return filters


def _condition_operand(node: FilterNode) -> Any:
    """Return the expression a condition filters on, if it has one."""
    if isinstance(node, ComparisonNode):
        return node.left
    if isinstance(node, InNode) and node.expressions:
        return node.expressions[0]
    if isinstance(node, BetweenNode):
        return node.expression
    if isinstance(node, (AndNode, OrNode)):
        return _condition_operand(node.left)
    if isinstance(node, NotNode):
        return _condition_operand(node.child)
    return None


def parse_query_filters(query: Any) -> list[FilterDescriptor]:
    """Parse the Where clauses of a prototypeQuery, one descriptor per clause."""
    if not isinstance(query, dict):
        return []
    aliases = source_aliases(query)
    filters = []
    for node in _where_conditions(query):
        field = _field_ref(_condition_operand(node), aliases)
        filters.append(
            FilterDescriptor(
                display_name=field.qualified_name if field else filter_type_name(QUERY_FILTER_TYPE),
                filter_type=QUERY_FILTER_TYPE,
                scope=FilterScope.QUERY,
                field=field,
                conditions=[node],
                description=render_condition(node, aliases),
            )
        )
    return filters
