"""Field Binding Extraction - Reconcile a visual's bindings across query encodings.

A visual names the measures and columns it uses in one of three places,
depending on which generation of tooling last saved it:

1. visual.query.queryState            role -> projections (current documents)
2. singleVisual.prototypeQuery.Select  flat Select list (legacy)
3. singleVisual.dataRoles              role -> items with a queryRef (legacy)

Real documents populate one of them. All three are read in the order of
FIELD_ENCODINGS and a binding already produced by an earlier encoding is not
repeated by a later one.

Visual calculations (prototypeQuery `Transform` entries) are collected
alongside the bindings.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from pbirdoc.models import (
    UNKNOWN_TABLE,
    BindingSource,
    FieldBinding,
    FieldBindings,
    FieldKind,
    VisualCalculation,
)

from .lookups import aggregation_name
from .stage_literal import as_list, as_text


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldRef:
    """What a field descriptor points at."""

    shape: str  # "Measure", "Column", "Aggregation", "HierarchyLevel" or "Hierarchy"
    kind: FieldKind
    table: str
    field: Optional[str] = None
    aggregation: Optional[str] = None


def source_aliases(query: Any) -> dict[str, str]:
    """Map `From` aliases to entity names for a prototype or filter query."""
    aliases: dict[str, str] = {}
    if not isinstance(query, dict):
        return aliases
    for source in as_list(query.get("From")):
        if isinstance(source, dict) and as_text(source.get("Name")) and as_text(source.get("Entity")):
            aliases[source["Name"]] = source["Entity"]
    return aliases


# Wrappers whose table lives under their own "Expression"
_NESTED_EXPRESSION_KEYS = (
    "Column",
    "Measure",
    "Aggregation",
    "HierarchyLevel",
    "Hierarchy",
    "PropertyVariationSource",
)


def resolve_table_name(expression: Any, aliases: Optional[dict[str, str]] = None) -> str:
    """Walk nested source references down to the entity name.

    Handles a plain `{"SourceRef": ...}` as well as column and aggregation
    wrappers, where the entity sits one or two levels deeper.

    Returns:
        The entity name, or "Unknown Table" if none can be found.
    """
    aliases = aliases or {}
    current = expression
    # depth is bounded by the nesting the query language allows
    for _ in range(8):
        if not isinstance(current, dict):
            break
        source_ref = current.get("SourceRef")
        if isinstance(source_ref, dict):
            entity = as_text(source_ref.get("Entity"))
            source = as_text(source_ref.get("Source"))
            if not entity and source:
                entity = aliases.get(source)
            return entity or UNKNOWN_TABLE
        for key in _NESTED_EXPRESSION_KEYS:
            inner = current.get(key)
            if isinstance(inner, dict):
                current = inner.get("Expression")
                break
        else:
            break
    return UNKNOWN_TABLE


def _measure(body: dict, aliases: dict[str, str]) -> FieldRef:
    return FieldRef(
        shape="Measure",
        kind=FieldKind.MEASURE,
        table=resolve_table_name(body.get("Expression"), aliases),
        field=as_text(body.get("Property")),
    )


def _column(body: dict, aliases: dict[str, str]) -> FieldRef:
    return FieldRef(
        shape="Column",
        kind=FieldKind.DIMENSION,
        table=resolve_table_name(body.get("Expression"), aliases),
        field=as_text(body.get("Property")),
    )


def _aggregation(body: dict, aliases: dict[str, str]) -> FieldRef:
    inner = body.get("Expression")
    field = None
    if isinstance(inner, dict):
        for key in ("Column", "Measure"):
            if isinstance(inner.get(key), dict):
                field = as_text(inner[key].get("Property"))
                break
    return FieldRef(
        shape="Aggregation",
        kind=FieldKind.MEASURE,
        table=resolve_table_name(inner, aliases),
        field=field,
        aggregation=aggregation_name(body.get("Function")),
    )


def _hierarchy_level(body: dict, aliases: dict[str, str]) -> FieldRef:
    hierarchy = body.get("Expression")
    name = None
    if isinstance(hierarchy, dict) and isinstance(hierarchy.get("Hierarchy"), dict):
        name = as_text(hierarchy["Hierarchy"].get("Hierarchy"))
    level = as_text(body.get("Level"))
    return FieldRef(
        shape="HierarchyLevel",
        kind=FieldKind.HIERARCHY,
        table=resolve_table_name(hierarchy, aliases),
        field=f"{name}.{level}" if name and level else (level or name),
    )


def _hierarchy(body: dict, aliases: dict[str, str]) -> FieldRef:
    return FieldRef(
        shape="Hierarchy",
        kind=FieldKind.HIERARCHY,
        table=resolve_table_name(body.get("Expression"), aliases),
        field=as_text(body.get("Hierarchy")),
    )


FIELD_SHAPES: tuple[tuple[str, Callable[[dict, dict[str, str]], FieldRef]], ...] = (
    ("Measure", _measure),
    ("Column", _column),
    ("Aggregation", _aggregation),
    ("HierarchyLevel", _hierarchy_level),
    ("Hierarchy", _hierarchy),
)


def classify_field(descriptor: Any, aliases: Optional[dict[str, str]] = None) -> Optional[FieldRef]:
    """Classify a field descriptor by the first shape in FIELD_SHAPES it carries.

    Returns:
        FieldRef, or None when the descriptor carries none of the shapes.
    """
    if not isinstance(descriptor, dict):
        return None
    for key, build in FIELD_SHAPES:
        body = descriptor.get(key)
        if isinstance(body, dict):
            return build(body, aliases or {})
    return None


def _binding(
    ref: FieldRef,
    name: Optional[str],
    role: Optional[str],
    source: BindingSource,
) -> FieldBinding:
    if not name:
        name = ref.field or ("Aggregated Field" if ref.aggregation else "Unnamed Field")
    return FieldBinding(
        role=role,
        kind=ref.kind,
        name=name,
        table=ref.table,
        field=ref.field,
        aggregation=ref.aggregation,
        source=source,
    )


def _single_visual(container: dict) -> dict:
    visual = container.get("visual")
    if isinstance(visual, dict) and isinstance(visual.get("singleVisual"), dict):
        return visual["singleVisual"]
    return {}


def from_projections(container: dict) -> list[FieldBinding]:
    """Read bindings from the current role/projection map."""
    visual = container.get("visual")
    if not isinstance(visual, dict):
        return []
    query = visual.get("query")
    query_state = query.get("queryState") if isinstance(query, dict) else None
    if not isinstance(query_state, dict):
        return []

    bindings = []
    for role, state in query_state.items():
        projections = state.get("projections") if isinstance(state, dict) else None
        if not isinstance(projections, list):
            continue
        for projection in projections:
            if not isinstance(projection, dict):
                continue
            ref = classify_field(projection.get("field"))
            if ref is None:
                logger.debug("Skipping projection without a field in role %s", role)
                continue
            name = as_text(projection.get("displayName")) or as_text(projection.get("queryRef"))
            bindings.append(_binding(ref, name, role, BindingSource.PROJECTION))
    return bindings


def _legacy_roles(single_visual: dict) -> dict[str, str]:
    """Map query refs to role names from singleVisual.projections."""
    roles: dict[str, str] = {}
    projections = single_visual.get("projections")
    if not isinstance(projections, dict):
        return roles
    for role, items in projections.items():
        for item in items if isinstance(items, list) else []:
            if isinstance(item, dict) and as_text(item.get("queryRef")):
                roles.setdefault(item["queryRef"], role)
    return roles


def from_prototype_query(container: dict) -> list[FieldBinding]:
    """Read bindings from a legacy prototypeQuery Select list."""
    single_visual = _single_visual(container)
    query = single_visual.get("prototypeQuery")
    if not isinstance(query, dict) or not isinstance(query.get("Select"), list):
        return []

    aliases = source_aliases(query)
    roles = _legacy_roles(single_visual)
    bindings = []
    for select in query["Select"]:
        ref = classify_field(select, aliases)
        if ref is None:
            continue
        name = as_text(select.get("Name"))
        bindings.append(_binding(ref, name, roles.get(name), BindingSource.SELECT))
    return bindings


def from_data_roles(container: dict) -> list[FieldBinding]:
    """Read bindings from a legacy dataRoles list.

    The list does not say whether an item is a measure or a column beyond
    the presence of `queryRef.Measure`.
    """
    data_roles = _single_visual(container).get("dataRoles")
    if not isinstance(data_roles, dict):
        return []

    bindings = []
    for role, items in data_roles.items():
        if not isinstance(items, list):
            continue
        for item in items:
            query_ref = item.get("queryRef") if isinstance(item, dict) else None
            if not isinstance(query_ref, dict):
                continue
            kind = FieldKind.MEASURE if "Measure" in query_ref else FieldKind.DIMENSION
            ref = classify_field(query_ref)
            bindings.append(
                FieldBinding(
                    role=role,
                    kind=kind,
                    name=as_text(query_ref.get("Name")) or "Unnamed Field",
                    table=ref.table if ref else UNKNOWN_TABLE,
                    field=ref.field if ref else None,
                    aggregation=ref.aggregation if ref else None,
                    source=BindingSource.DATA_ROLE,
                )
            )
    return bindings


VISUAL_CALCULATION = "VisualCalculation"


def extract_visual_calculations(container: Any) -> list[VisualCalculation]:
    """Read `prototypeQuery.Transform` entries whose algorithm is VisualCalculation."""
    if not isinstance(container, dict):
        return []
    query = _single_visual(container).get("prototypeQuery")
    if not isinstance(query, dict):
        return []

    calculations = []
    for transform in as_list(query.get("Transform")):
        if not isinstance(transform, dict) or transform.get("Algorithm") != VISUAL_CALCULATION:
            continue
        calculations.append(
            VisualCalculation(
                name=as_text(transform.get("Name")) or "Unnamed Calculation",
                input=transform.get("Input"),
                output=transform.get("Output"),
            )
        )
    return calculations


FIELD_ENCODINGS: tuple[tuple[BindingSource, Callable[[dict], list[FieldBinding]]], ...] = (
    (BindingSource.PROJECTION, from_projections),
    (BindingSource.SELECT, from_prototype_query),
    (BindingSource.DATA_ROLE, from_data_roles),
)


def _identity(binding: FieldBinding) -> Optional[tuple]:
    if binding.field is None:
        return None
    return (binding.kind, binding.table, binding.field, binding.aggregation)


def extract_field_bindings(container: Any) -> FieldBindings:
    """Extract the bindings of a visual container.

    Args:
        container: Decoded visual.json document.

    Returns:
        FieldBindings with measures, dimensions and hierarchies from the
        projection and Select encodings, dataRoles items under `values`, and
        the visual calculations of a legacy prototypeQuery.
    """
    if not isinstance(container, dict):
        return FieldBindings()

    measures: list[FieldBinding] = []
    dimensions: list[FieldBinding] = []
    hierarchies: list[FieldBinding] = []
    values: list[FieldBinding] = []
    seen_identities: set[tuple] = set()
    seen_names: set[str] = set()

    for source, extract in FIELD_ENCODINGS:
        produced = [
            binding
            for binding in extract(container)
            if _identity(binding) not in seen_identities and binding.name not in seen_names
        ]
        for binding in produced:
            if source == BindingSource.DATA_ROLE:
                values.append(binding)
            elif binding.kind == FieldKind.MEASURE:
                measures.append(binding)
            elif binding.kind == FieldKind.HIERARCHY:
                hierarchies.append(binding)
            else:
                dimensions.append(binding)

        # Only bindings from earlier encodings suppress later ones
        for binding in produced:
            identity = _identity(binding)
            if identity is not None:
                seen_identities.add(identity)
            seen_names.add(binding.name)
            seen_names.add(binding.qualified_name)

    return FieldBindings(
        measures=measures,
        dimensions=dimensions,
        hierarchies=hierarchies,
        values=values,
        calculations=extract_visual_calculations(container),
    )
