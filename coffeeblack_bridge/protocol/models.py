"""CoffeeBlack reason API — Canonical data models.

The service answers with loosely-typed JSON.  These Pydantic v2 models give it
a shape once ``validate_response`` has checked the top-level contract.  Do not
add business logic here, only data shapes and derived values.

Boxes carry two geometric descriptions of the same element: ``mesh``
(x, y, width, height) and ``bbox`` (x1, y1, x2, y2), both in viewport pixels.
Both are preserved because the translator uses ``bbox`` for clicks and
``mesh`` for typing.

Only the top-level fields are part of the contract.  A nested value that does
not parse (box geometry, a confidence of ``null``, a directive option, the
diagnostics) falls back to its default instead of rejecting the response.
The translator reports a missing field for the box it actually reads.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    WrapValidator,
    model_validator,
)


def _fail_soft(default: Any) -> WrapValidator:
    """Replace a value that does not validate with *default*."""

    def validate(value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        try:
            return handler(value)
        except ValidationError:
            return default

    return WrapValidator(validate)


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


class Point(BaseModel):
    x: float
    y: float


class Mesh(BaseModel):
    model_config = ConfigDict(extra="allow")

    x: float
    y: float
    width: float
    height: float

    def center(self) -> Point:
        return Point(x=self.x + self.width / 2, y=self.y + self.height / 2)


class BBox(BaseModel):
    model_config = ConfigDict(extra="allow")

    x1: float
    y1: float
    x2: float
    y2: float

    def center(self) -> Point:
        width = self.x2 - self.x1
        height = self.y2 - self.y1
        return Point(x=self.x1 + width / 2, y=self.y1 + height / 2)


class BoundingBox(BBox):
    """Metadata copy of the element geometry, with explicit size."""

    width: Annotated[float | None, _fail_soft(None)] = None
    height: Annotated[float | None, _fail_soft(None)] = None


class BoxMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    element_type: Annotated[str | None, _fail_soft(None)] = None
    bounding_box: Annotated[BoundingBox | None, _fail_soft(None)] = None


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------


class Box(BaseModel):
    """One UI element candidate detected by the model.

    Geometry that is absent or incomplete is ``None``.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    uniqueid: Annotated[str | None, _fail_soft(None)] = Field(default=None, alias="_uniqueid")
    mesh: Annotated[Mesh | None, _fail_soft(None)] = None
    bbox: Annotated[BBox | None, _fail_soft(None)] = None
    metadata: Annotated[BoxMetadata | None, _fail_soft(None)] = None
    confidence: Annotated[float, _fail_soft(0.0)] = 0.0
    is_chosen: Annotated[bool, _fail_soft(False)] = False

    @model_validator(mode="before")
    @classmethod
    def _non_object_as_empty(cls, data: Any) -> Any:
        # A null or scalar entry in ``boxes`` becomes a box with no geometry.
        return data if isinstance(data, (dict, BaseModel)) else {}


class ActionDirective(BaseModel):
    """The single action the model chose for this turn.

    ``action`` is kept as a plain string so that kinds this package does not
    know about reach the translator and fail there with a named error.
    """

    model_config = ConfigDict(extra="allow")

    action: str
    key_command: Annotated[str | None, _fail_soft(None)] = None
    input_text: Annotated[str | None, _fail_soft(None)] = None
    scroll_direction: Annotated[str | None, _fail_soft(None)] = None
    confidence: Annotated[float, _fail_soft(0.0)] = 0.0


class ReasoningResponse(BaseModel):
    """Full answer for one ``reason`` query."""

    model_config = ConfigDict(extra="allow")

    query: str
    boxes: list[Box]
    chosen_action: ActionDirective
    chosen_element_index: int
    explanation: str
    raw_detections: Annotated[dict[str, Any] | None, _fail_soft(None)] = None
    hierarchy: Annotated[dict[str, Any] | None, _fail_soft(None)] = None
    timings: Annotated[dict[str, Any] | None, _fail_soft(None)] = None

    @property
    def chosen_box(self) -> Box | None:
        """The box at ``chosen_element_index``, or None when out of range."""
        if 0 <= self.chosen_element_index < len(self.boxes):
            return self.boxes[self.chosen_element_index]
        return None


# ---------------------------------------------------------------------------
# Parsed actions: device-operation-ready form of a directive
# ---------------------------------------------------------------------------


class ClickAction(BaseModel):
    method: Literal["click"] = "click"
    coordinates: Point


class FillAction(BaseModel):
    method: Literal["fill"] = "fill"
    coordinates: Point
    value: str


class ScrollAction(BaseModel):
    method: Literal["scroll"] = "scroll"
    value: str

    @property
    def is_up(self) -> bool:
        # Anything other than the literal "up" scrolls down.
        return self.value == "up"

    def delta_y(self, magnitude: int = 100) -> int:
        return -magnitude if self.is_up else magnitude


ParsedAction = Union[ClickAction, FillAction, ScrollAction]
