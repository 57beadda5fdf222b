"""Visual-level canonical models."""

from typing import Any, Optional, Union

from pydantic import Field

from .base import BindingSource, CanonicalModel, FieldKind
from .filter import FilterDescriptor


UNKNOWN_TABLE = "Unknown Table"


class Position(CanonicalModel):
    """Visual placement on the page canvas.

    Missing coordinates default to 0 so layout arithmetic never sees None.
    """

    x: float = 0.0
    y: float = 0.0
    z: float = Field(default=0.0, description="Stacking order")
    width: float = Field(default=0.0, ge=0.0)
    height: float = Field(default=0.0, ge=0.0)
    tab_order: Optional[int] = None
    angle: Optional[float] = Field(None, description="Rotation in degrees")

    @property
    def x2(self) -> float:
        """Right edge X coordinate."""
        return self.x + self.width

    @property
    def y2(self) -> float:
        """Bottom edge Y coordinate."""
        return self.y + self.height


class FieldBinding(CanonicalModel):
    """A visual role bound to a measure, column or hierarchy level."""

    role: Optional[str] = Field(None, description="e.g. 'Category', 'Y'")
    kind: FieldKind
    name: str = Field(..., description="Display name of the binding")
    table: str = UNKNOWN_TABLE
    field: Optional[str] = None
    aggregation: Optional[str] = None
    source: BindingSource

    @property
    def qualified_name(self) -> str:
        """Return `Table.Field`, or just the display name when no field is known."""
        if self.field:
            return f"{self.table}.{self.field}"
        return self.name


class VisualCalculation(CanonicalModel):
    """A visual calculation declared in a legacy prototypeQuery Transform."""

    name: str
    algorithm: str = "VisualCalculation"
    input: Any = None
    output: Any = None


class FieldBindings(CanonicalModel):
    """Bindings grouped by semantic kind.

    `values` only holds bindings read from the legacy dataRoles list, which
    does not say whether an item is a measure or a column. Visual
    calculations are not bindings and do not count towards `total`.
    """

    measures: list[FieldBinding] = Field(default_factory=list)
    dimensions: list[FieldBinding] = Field(default_factory=list)
    hierarchies: list[FieldBinding] = Field(default_factory=list)
    values: list[FieldBinding] = Field(default_factory=list)
    calculations: list[VisualCalculation] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.measures) + len(self.dimensions) + len(self.hierarchies) + len(self.values)

    def all(self) -> list[FieldBinding]:
        """Return every binding in group order."""
        return [*self.measures, *self.dimensions, *self.hierarchies, *self.values]


class BackgroundStyle(CanonicalModel):
    color: Optional[str] = None
    transparency: Optional[Union[float, str]] = None


class BorderStyle(CanonicalModel):
    color: Optional[str] = None
    show: Optional[bool] = None


class TitleStyle(CanonicalModel):
    font_family: Optional[str] = None
    font_size: Optional[Union[float, str]] = None
    font_color: Optional[str] = None


class Formatting(CanonicalModel):
    """Formatting extracted from container and visual objects."""

    background: Optional[BackgroundStyle] = None
    border: Optional[BorderStyle] = None
    colors: list[str] = Field(default_factory=list, description="Data-series colors")
    title: Optional[TitleStyle] = None


class Visual(CanonicalModel):
    """
    One visual container placed on a page.

    Built in a single pass by the visual normalizer and only attached to its
    page once every extraction step has finished.
    """

    id: str = Field(..., description="Path-derived identifier, unique within the page")
    page_id: str
    name: Optional[str] = Field(None, description="Container 'name' property")
    display_name: str
    visual_type: str = Field(..., description="Canonical type tag")
    raw_type: Optional[str] = Field(None, description="visualType as found in the document")

    position: Position = Field(default_factory=Position)
    mobile_position: Optional[Position] = Field(
        None, description="Mobile layout override, applied by the renderer only"
    )
    bindings: FieldBindings = Field(default_factory=FieldBindings)
    filters: list[FilterDescriptor] = Field(default_factory=list)
    formatting: Formatting = Field(default_factory=Formatting)

    is_hidden: bool = False
    group_name: Optional[str] = Field(None, description="Display name when this container is a visual group")
    parent_group_name: Optional[str] = None
    how_created: Optional[str] = None

    @property
    def is_group(self) -> bool:
        """Check if this container is a visual group rather than a visual."""
        return self.group_name is not None

