"""Pydantic request/response schemas for the LayoutX API.

Each schema converts to or from the matching immutable engine value; the
engine itself never sees pydantic models.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field, model_validator

from layoutx.engine.constraint import Constraint, ConstraintMode, Layout
from layoutx.engine.orientation import Orientation
from layoutx.engine.plan import (
    AutoOrient,
    Command,
    Constrain,
    Crop,
    DecoderOffer,
    DecoderRequest,
    Flip,
    FlipAxis,
    IdealLayout,
    LayoutPlan,
    Pad,
    Padding,
    Region,
    RegionCoord,
    Rotate,
    Rotation,
)
from layoutx.engine.primitives import CanvasColor, ColorSpace, Gravity, Rect, Size, SourceCrop

# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


class SizeSchema(BaseModel):
    width: int = Field(ge=0)
    height: int = Field(ge=0)

    def to_size(self) -> Size:
        return Size(self.width, self.height)

    @classmethod
    def from_size(cls, size: Size) -> SizeSchema:
        return cls(width=size.width, height=size.height)


class RectSchema(BaseModel):
    x: int = Field(ge=0)
    y: int = Field(ge=0)
    width: int = Field(ge=0)
    height: int = Field(ge=0)

    def to_rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    @classmethod
    def from_rect(cls, rect: Rect | None) -> RectSchema | None:
        if rect is None:
            return None
        return cls(x=rect.x, y=rect.y, width=rect.width, height=rect.height)


class CropSchema(BaseModel):
    """A crop in pixels, or in fractions (0.0-1.0) of the image when unit is 'percent'."""

    unit: Literal["px", "percent"] = "px"
    x: float = Field(ge=0)
    y: float = Field(ge=0)
    width: float = Field(ge=0)
    height: float = Field(ge=0)

    def to_source_crop(self) -> SourceCrop:
        if self.unit == "percent":
            return SourceCrop.percent(self.x, self.y, self.width, self.height)
        return SourceCrop.pixels(int(self.x), int(self.y), int(self.width), int(self.height))


class GravitySchema(BaseModel):
    x: float = Field(ge=0.0, le=1.0, description="Horizontal anchor (0.0 = left, 1.0 = right)")
    y: float = Field(ge=0.0, le=1.0, description="Vertical anchor (0.0 = top, 1.0 = bottom)")


class ColorSchema(BaseModel):
    """Canvas color. sRGB channels are 0-255 integers; linear channels are floats."""

    space: ColorSpace = ColorSpace.TRANSPARENT
    r: float = 0
    g: float = 0
    b: float = 0
    a: float = 0

    @model_validator(mode="after")
    def _check_srgb_channels(self) -> ColorSchema:
        if self.space == ColorSpace.SRGB:
            for channel in (self.r, self.g, self.b, self.a):
                if not channel.is_integer() or not 0 <= channel <= 255:
                    raise ValueError("sRGB channels must be integers in 0-255")
        return self

    def to_canvas_color(self) -> CanvasColor:
        if self.space == ColorSpace.SRGB:
            return CanvasColor.srgb(int(self.r), int(self.g), int(self.b), int(self.a))
        if self.space == ColorSpace.LINEAR:
            return CanvasColor.linear(self.r, self.g, self.b, self.a)
        return CanvasColor.transparent()

    @classmethod
    def from_canvas_color(cls, color: CanvasColor) -> ColorSchema:
        return cls(space=color.space, r=color.r, g=color.g, b=color.b, a=color.a)


class ConstraintSchema(BaseModel):
    mode: ConstraintMode
    width: int | None = Field(default=None, ge=0)
    height: int | None = Field(default=None, ge=0)
    gravity: GravitySchema | None = Field(default=None, description="Anchor; omitted means center")
    canvas_color: ColorSchema | None = None
    source_crop: CropSchema | None = None

    def to_constraint(self) -> Constraint:
        constraint = Constraint(self.mode, self.width, self.height)
        if self.gravity is not None:
            constraint = constraint.with_gravity(Gravity.percentage(self.gravity.x, self.gravity.y))
        if self.canvas_color is not None:
            constraint = constraint.with_canvas_color(self.canvas_color.to_canvas_color())
        if self.source_crop is not None:
            constraint = constraint.with_source_crop(self.source_crop.to_source_crop())
        return constraint


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class AutoOrientCommand(BaseModel):
    type: Literal["auto_orient"] = "auto_orient"
    exif: int = Field(description="EXIF orientation tag; values outside 1-8 are ignored")

    def to_command(self) -> Command:
        return AutoOrient(self.exif)


class RotateCommand(BaseModel):
    type: Literal["rotate"] = "rotate"
    rotation: Rotation

    def to_command(self) -> Command:
        return Rotate(self.rotation)


class FlipCommand(BaseModel):
    type: Literal["flip"] = "flip"
    axis: FlipAxis

    def to_command(self) -> Command:
        return Flip(self.axis)


class CropCommand(BaseModel):
    type: Literal["crop"] = "crop"
    crop: CropSchema

    def to_command(self) -> Command:
        return Crop(self.crop.to_source_crop())


class RegionCoordSchema(BaseModel):
    """One region edge: ``percent`` of the image extent plus ``pixels``. Either may be negative."""

    percent: float = 0.0
    pixels: int = 0

    def to_region_coord(self) -> RegionCoord:
        return RegionCoord(self.percent, self.pixels)


class RegionCommand(BaseModel):
    """A viewport by edges; the part outside the image is filled with ``color``."""

    type: Literal["region"] = "region"
    left: RegionCoordSchema
    top: RegionCoordSchema
    right: RegionCoordSchema
    bottom: RegionCoordSchema
    color: ColorSchema | None = None

    def to_command(self) -> Command:
        color = self.color.to_canvas_color() if self.color is not None else CanvasColor.transparent()
        return Region(
            self.left.to_region_coord(),
            self.top.to_region_coord(),
            self.right.to_region_coord(),
            self.bottom.to_region_coord(),
            color,
        )


class ConstrainCommand(BaseModel):
    type: Literal["constrain"] = "constrain"
    constraint: ConstraintSchema

    def to_command(self) -> Command:
        return Constrain(self.constraint.to_constraint())


class PadCommand(BaseModel):
    type: Literal["pad"] = "pad"
    top: int = Field(default=0, ge=0)
    right: int = Field(default=0, ge=0)
    bottom: int = Field(default=0, ge=0)
    left: int = Field(default=0, ge=0)
    color: ColorSchema | None = None

    def to_command(self) -> Command:
        color = self.color.to_canvas_color() if self.color is not None else CanvasColor.transparent()
        return Pad(Padding(self.top, self.right, self.bottom, self.left, color))


CommandSchema = Annotated[
    AutoOrientCommand | RotateCommand | FlipCommand | CropCommand | RegionCommand | ConstrainCommand | PadCommand,
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class LayoutRequest(BaseModel):
    source: SizeSchema
    constraint: ConstraintSchema


class PlanRequest(BaseModel):
    source: SizeSchema
    commands: list[CommandSchema] = Field(default_factory=list)
    sequential: bool = Field(
        default=False,
        description="Apply every command in order to the result of the one before, instead of first-wins",
    )

    def to_commands(self) -> list[Command]:
        return [command.to_command() for command in self.commands]


class DecoderOfferSchema(BaseModel):
    dimensions: SizeSchema
    crop_applied: RectSchema | None = None
    orientation_applied: int = Field(default=1, ge=1, le=8, description="EXIF value of the applied orientation")

    def to_offer(self) -> DecoderOffer:
        orientation = Orientation.from_exif(self.orientation_applied) or Orientation.IDENTITY
        crop = self.crop_applied.to_rect() if self.crop_applied is not None else None
        return DecoderOffer(self.dimensions.to_size(), crop, orientation)


class FinalizeRequest(PlanRequest):
    offer: DecoderOfferSchema | None = Field(default=None, description="Omit for a plain full-size decode")


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class LayoutSchema(BaseModel):
    source: SizeSchema
    source_crop: RectSchema | None
    resize_to: SizeSchema
    canvas: SizeSchema
    placement: tuple[int, int]
    canvas_color: ColorSchema

    @classmethod
    def from_layout(cls, layout: Layout) -> LayoutSchema:
        return cls(
            source=SizeSchema.from_size(layout.source),
            source_crop=RectSchema.from_rect(layout.source_crop),
            resize_to=SizeSchema.from_size(layout.resize_to),
            canvas=SizeSchema.from_size(layout.canvas),
            placement=layout.placement,
            canvas_color=ColorSchema.from_canvas_color(layout.canvas_color),
        )


class PaddingSchema(BaseModel):
    top: int
    right: int
    bottom: int
    left: int
    color: ColorSchema

    @classmethod
    def from_padding(cls, padding: Padding | None) -> PaddingSchema | None:
        if padding is None:
            return None
        return cls(
            top=padding.top,
            right=padding.right,
            bottom=padding.bottom,
            left=padding.left,
            color=ColorSchema.from_canvas_color(padding.color),
        )


class IdealLayoutSchema(BaseModel):
    orientation: int = Field(description="Net orientation as an EXIF value (1-8)")
    layout: LayoutSchema
    source_crop: RectSchema | None = Field(description="Crop in pre-orientation source coordinates")
    padding: PaddingSchema | None = Field(default=None, description="Explicit padding already folded into layout")

    @classmethod
    def from_ideal(cls, ideal: IdealLayout) -> IdealLayoutSchema:
        return cls(
            orientation=ideal.orientation.to_exif(),
            layout=LayoutSchema.from_layout(ideal.layout),
            source_crop=RectSchema.from_rect(ideal.source_crop),
            padding=PaddingSchema.from_padding(ideal.padding),
        )


class DecoderRequestSchema(BaseModel):
    crop: RectSchema | None
    prescale_target: SizeSchema
    orientation: int

    @classmethod
    def from_request(cls, request: DecoderRequest) -> DecoderRequestSchema:
        return cls(
            crop=RectSchema.from_rect(request.crop),
            prescale_target=SizeSchema.from_size(request.prescale_target),
            orientation=request.orientation.to_exif(),
        )


class PlanResponse(BaseModel):
    ideal: IdealLayoutSchema
    decoder_request: DecoderRequestSchema


class LayoutPlanSchema(BaseModel):
    decoder_request: DecoderRequestSchema
    trim: RectSchema | None
    resize_to: SizeSchema
    remaining_orientation: int
    canvas: SizeSchema
    placement: tuple[int, int]
    canvas_color: ColorSchema
    resize_is_identity: bool

    @classmethod
    def from_plan(cls, layout_plan: LayoutPlan) -> LayoutPlanSchema:
        return cls(
            decoder_request=DecoderRequestSchema.from_request(layout_plan.decoder_request),
            trim=RectSchema.from_rect(layout_plan.trim),
            resize_to=SizeSchema.from_size(layout_plan.resize_to),
            remaining_orientation=layout_plan.remaining_orientation.to_exif(),
            canvas=SizeSchema.from_size(layout_plan.canvas),
            placement=layout_plan.placement,
            canvas_color=ColorSchema.from_canvas_color(layout_plan.canvas_color),
            resize_is_identity=layout_plan.resize_is_identity,
        )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
