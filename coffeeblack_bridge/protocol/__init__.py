"""CoffeeBlack reason API — wire models and validation."""

from coffeeblack_bridge.protocol.models import (
    ActionDirective,
    BBox,
    BoundingBox,
    Box,
    BoxMetadata,
    ClickAction,
    FillAction,
    Mesh,
    ParsedAction,
    Point,
    ReasoningResponse,
    ScrollAction,
)
from coffeeblack_bridge.protocol.validator import decode_body, validate_response

__all__ = [
    "ActionDirective",
    "BBox",
    "BoundingBox",
    "Box",
    "BoxMetadata",
    "ClickAction",
    "FillAction",
    "Mesh",
    "ParsedAction",
    "Point",
    "ReasoningResponse",
    "ScrollAction",
    "decode_body",
    "validate_response",
]
