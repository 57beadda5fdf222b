"""Filter condition tree and filter descriptor models.

A filter condition is a tagged variant. Each node class carries a literal
`kind` so a dumped tree can be validated back into the right node type.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import Field

from .base import CanonicalModel, FilterScope


class ComparisonNode(CanonicalModel):
    """Binary comparison, e.g. `Sales.Amount > 10`."""

    kind: Literal["Comparison"] = "Comparison"
    operator: str = Field(..., description="Resolved comparison kind, e.g. 'GreaterThan'")
    left: Any = None
    right: Any = None


class InNode(CanonicalModel):
    """Set membership. `values` holds one tuple of operands per row."""

    kind: Literal["In"] = "In"
    expressions: list[Any] = Field(default_factory=list)
    values: list[list[Any]] = Field(default_factory=list)


class BetweenNode(CanonicalModel):
    kind: Literal["Between"] = "Between"
    expression: Any = None
    lower: Any = None
    upper: Any = None


class AndNode(CanonicalModel):
    kind: Literal["And"] = "And"
    left: "FilterNode"
    right: "FilterNode"


class OrNode(CanonicalModel):
    kind: Literal["Or"] = "Or"
    left: "FilterNode"
    right: "FilterNode"


class NotNode(CanonicalModel):
    kind: Literal["Not"] = "Not"
    child: "FilterNode"


class LeafNode(CanonicalModel):
    """Any condition shape the interpreter does not recognize, kept verbatim."""

    kind: Literal["Leaf"] = "Leaf"
    raw: Any = None


FilterNode = Annotated[
    Union[ComparisonNode, InNode, BetweenNode, AndNode, OrNode, NotNode, LeafNode],
    Field(discriminator="kind"),
]

AndNode.model_rebuild()
OrNode.model_rebuild()
NotNode.model_rebuild()


class FilterFieldRef(CanonicalModel):
    """The column, measure or hierarchy level a filter targets."""

    kind: str = Field(..., description="'Column', 'Measure', 'Aggregation' or 'HierarchyLevel'")
    table: str
    property_name: Optional[str] = None

    @property
    def qualified_name(self) -> str:
        return f"{self.table}.{self.property_name or 'Unknown Field'}"


class FilterDescriptor(CanonicalModel):
    """A filter declared on a report, page, visual, or inside a visual query."""

    name: Optional[str] = None
    display_name: str
    filter_type: str = Field(..., description="Filter type tag, e.g. 'Categorical'")
    scope: FilterScope
    field: Optional[FilterFieldRef] = None
    conditions: list[FilterNode] = Field(default_factory=list)
    description: str = ""
    is_hidden: bool = False
    is_locked: bool = False
    ordinal: Optional[int] = None
