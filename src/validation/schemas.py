# src/validation/schemas.py — v2
"""Required output shapes for each phase.

JSON keys are camelCase; models use snake_case attributes with aliases.
Unknown keys are preserved so validation never drops model output.
Numeric ranges: confidences in [0, 1]; lengths, thicknesses, widths,
heights and scales > 0; areas, volumes and counts >= 0.
Non-finite numbers are rejected everywhere. Only the camelCase keys are
accepted: a snake_case key counts as unknown, not as the field.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Confidence = Annotated[float, Field(ge=0.0, le=1.0)]
Positive = Annotated[float, Field(gt=0)]
NonNegative = Annotated[float, Field(ge=0)]
Count = Annotated[int, Field(ge=0)]


class BIMModel(BaseModel):
    """Base for all phase shapes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        allow_inf_nan=False,
        extra="allow",
    )


class Point2D(BIMModel):
    x: float
    y: float


# ==================== Phase 1: Normalization ====================

class Scale(BIMModel):
    pixels_per_meter: Positive
    detected_unit: str


class CoordinateSystem(BIMModel):
    origin: Point2D
    scale: Scale
    rotation: float


class FloorPlanBounds(BIMModel):
    top_left: Point2D
    bottom_right: Point2D


class Phase1Metadata(BIMModel):
    detected_floor_level: str | None = None
    confidence: Confidence
    notes: str | None = None


class Phase1Result(BIMModel):
    coordinate_system: CoordinateSystem
    floor_plan_bounds: FloorPlanBounds
    metadata: Phase1Metadata


# ==================== Phase 2: Structure ====================

class Segment(BIMModel):
    start: Point2D
    end: Point2D


class Wall(BIMModel):
    id: str
    type: Literal["exterior", "interior", "loadBearing", "partition"]
    geometry: Segment
    thickness: Positive
    height: Positive | None = None
    material: str | None = None


class ColumnDimensions(BIMModel):
    width: Positive
    depth: Positive | None = None


class Column(BIMModel):
    id: str
    position: Point2D
    shape: Literal["rectangular", "circular", "H-beam", "I-beam"]
    dimensions: ColumnDimensions


class Phase2Metadata(BIMModel):
    total_walls: Count
    total_columns: Count | None = None
    confidence: Confidence


class Phase2Result(BIMModel):
    walls: list[Wall]
    columns: list[Column] | None = None
    metadata: Phase2Metadata


# ==================== Phase 3: Openings ====================

class Door(BIMModel):
    id: str
    wall_id: str
    type: Literal["single", "double", "sliding", "folding"]
    position: Point2D
    width: Positive
    height: Positive
    swing_direction: Literal["left", "right", "both", "none"] | None = None


class Window(BIMModel):
    id: str
    wall_id: str
    type: Literal["fixed", "casement", "sliding", "awning"]
    position: Point2D
    width: Positive
    height: Positive
    sill_height: NonNegative | None = None


class Phase3Metadata(BIMModel):
    total_doors: Count
    total_windows: Count
    confidence: Confidence


class Phase3Result(BIMModel):
    doors: list[Door]
    windows: list[Window]
    metadata: Phase3Metadata


# ==================== Phase 4: Spaces ====================

SpaceType = Literal[
    "bedroom", "living", "kitchen", "bathroom",
    "corridor", "storage", "balcony", "other",
]


class Space(BIMModel):
    id: str
    name: str
    type: SpaceType
    boundary: list[Point2D]
    area: NonNegative
    adjacent_spaces: list[str] | None = None


class Phase4Metadata(BIMModel):
    total_spaces: Count
    total_area: NonNegative
    confidence: Confidence


class Phase4Result(BIMModel):
    spaces: list[Space]
    metadata: Phase4Metadata


# ==================== Phase 5: Dimensions ====================

class WallDimension(BIMModel):
    wall_id: str
    length: Positive
    thickness: Positive
    height: Positive


class SpaceDimension(BIMModel):
    space_id: str
    width: Positive
    length: Positive
    height: Positive
    area: NonNegative
    volume: NonNegative


class OpeningDimension(BIMModel):
    opening_id: str
    width: Positive
    height: Positive


class DimensionSet(BIMModel):
    walls: list[WallDimension]
    spaces: list[SpaceDimension]
    openings: list[OpeningDimension]


class Phase5Metadata(BIMModel):
    unit: str
    confidence: Confidence


class Phase5Result(BIMModel):
    dimensions: DimensionSet
    metadata: Phase5Metadata


# ==================== Phase 6: Master JSON ====================

class MasterMetadata(BIMModel):
    project_name: str | None = None
    version: str
    created_at: str
    unit: str
    floor_level: str | None = None


class MasterCoordinateSystem(BIMModel):
    origin: Point2D
    scale: Positive
    rotation: float


class Building(BIMModel):
    walls: list[Any]
    columns: list[Any] | None = None
    doors: list[Any]
    windows: list[Any]
    spaces: list[Any]


class BuildingDimensions(BIMModel):
    total_area: NonNegative
    total_volume: NonNegative | None = None
    wall_length: NonNegative


class Verification(BIMModel):
    confidence: Confidence
    issues: list[Any]


class MasterBIM(BIMModel):
    metadata: MasterMetadata
    coordinate_system: MasterCoordinateSystem
    building: Building
    dimensions: BuildingDimensions
    verification: Verification


PHASE_SCHEMAS: dict[int, type[BIMModel]] = {
    1: Phase1Result,
    2: Phase2Result,
    3: Phase3Result,
    4: Phase4Result,
    5: Phase5Result,
    6: MasterBIM,
}
