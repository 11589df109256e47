"""Command pipeline and two-phase decoder negotiation.

Phase one, :func:`plan`, folds a command list into an :class:`IdealLayout`
computed in display (post-orientation) space, plus an advisory
:class:`DecoderRequest` expressed in source space.

Phase two, :func:`finalize`, takes the decoder's :class:`DecoderOffer` (what it
actually did) and returns a :class:`LayoutPlan` whose steps, executed on the
decoder's real output, reproduce the ideal layout exactly:

    trim -> remaining orientation -> resize -> place on canvas
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING

from layoutx.engine.constraint import Constraint, ConstraintMode, EmptyViewport, Layout, ZeroSourceDimension
from layoutx.engine.orientation import Orientation
from layoutx.engine.primitives import CanvasColor, Rect, Size, SourceCrop, round_half_up

if TYPE_CHECKING:
    from collections.abc import Iterable

    from layoutx.engine.primitives import Box

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class Rotation(StrEnum):
    """Clockwise manual rotation."""

    ROTATE_90 = "90"
    ROTATE_180 = "180"
    ROTATE_270 = "270"

    @property
    def orientation(self) -> Orientation:
        return {
            Rotation.ROTATE_90: Orientation.ROTATE_90,
            Rotation.ROTATE_180: Orientation.ROTATE_180,
            Rotation.ROTATE_270: Orientation.ROTATE_270,
        }[self]


class FlipAxis(StrEnum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    @property
    def orientation(self) -> Orientation:
        if self is FlipAxis.HORIZONTAL:
            return Orientation.FLIP_H
        return Orientation.FLIP_V


@dataclass(frozen=True)
class AutoOrient:
    """EXIF orientation correction. Values outside 1-8 are ignored."""

    exif: int


@dataclass(frozen=True)
class Rotate:
    """Manual rotation; stacks with EXIF and other orientation commands."""

    rotation: Rotation


@dataclass(frozen=True)
class Flip:
    axis: FlipAxis


@dataclass(frozen=True)
class Crop:
    """Crop in display (post-orientation) coordinates."""

    crop: SourceCrop


@dataclass(frozen=True)
class RegionCoord:
    """One edge of a :class:`Region`: a fraction of the extent plus a pixel offset."""

    percent: float = 0.0
    pixels: int = 0

    @classmethod
    def px(cls, pixels: int) -> RegionCoord:
        return cls(0.0, pixels)

    @classmethod
    def pct(cls, percent: float) -> RegionCoord:
        return cls(percent, 0)

    @classmethod
    def pct_px(cls, percent: float, pixels: int) -> RegionCoord:
        return cls(percent, pixels)

    def resolve(self, extent: int) -> int:
        return round_half_up(extent * self.percent) + self.pixels


@dataclass(frozen=True)
class Region:
    """A viewport over the current image, given by its four edges.

    Edges may lie outside the image. The part of the viewport over the image
    acts as a crop; the rest is filled with ``color``. ``right`` and
    ``bottom`` are exclusive.
    """

    left: RegionCoord
    top: RegionCoord
    right: RegionCoord
    bottom: RegionCoord
    color: CanvasColor = field(default_factory=CanvasColor.transparent)

    @classmethod
    def crop(cls, left: int, top: int, right: int, bottom: int) -> Region:
        return cls(RegionCoord.px(left), RegionCoord.px(top), RegionCoord.px(right), RegionCoord.px(bottom))

    @classmethod
    def padded(cls, amount: int, color: CanvasColor | None = None) -> Region:
        """Grow the image by ``amount`` pixels on every side."""
        if color is None:
            color = CanvasColor.transparent()
        far = RegionCoord.pct_px(1.0, amount)
        return cls(RegionCoord.px(-amount), RegionCoord.px(-amount), far, far, color)

    def resolve(self, width: int, height: int) -> Box:
        """Signed ``(x, y, width, height)`` against a ``width`` x ``height`` image."""
        left = self.left.resolve(width)
        top = self.top.resolve(height)
        return left, top, self.right.resolve(width) - left, self.bottom.resolve(height) - top


@dataclass(frozen=True)
class Constrain:
    """Constrain dimensions in display (post-orientation) coordinates."""

    constraint: Constraint


@dataclass(frozen=True)
class Padding:
    """Pixel margins added around the final image."""

    top: int = 0
    right: int = 0
    bottom: int = 0
    left: int = 0
    color: CanvasColor = field(default_factory=CanvasColor.transparent)

    def __post_init__(self) -> None:
        if min(self.top, self.right, self.bottom, self.left) < 0:
            raise ValueError("Padding margins must be non-negative")


@dataclass(frozen=True)
class Pad:
    padding: Padding


Command = AutoOrient | Rotate | Flip | Crop | Region | Constrain | Pad


# ---------------------------------------------------------------------------
# Phase results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DecoderRequest:
    """What the planner would like a decoder to do. Advisory only."""

    crop: Rect | None
    prescale_target: Size
    orientation: Orientation


@dataclass(frozen=True)
class DecoderOffer:
    """What a decoder reports it actually did.

    ``dimensions`` is the size of the decoder's output buffer. ``crop_applied``
    is in source coordinates.
    """

    dimensions: Size
    crop_applied: Rect | None = None
    orientation_applied: Orientation = Orientation.IDENTITY

    @classmethod
    def full_decode(cls, width: int, height: int) -> DecoderOffer:
        """The decoder did nothing special, just decoded at full size."""
        return cls(dimensions=Size(width, height))


@dataclass(frozen=True)
class LayoutPlan:
    """Final, pixel-exact execution plan after decoder negotiation."""

    decoder_request: DecoderRequest
    trim: Rect | None
    resize_to: Size
    remaining_orientation: Orientation
    canvas: Size
    placement: tuple[int, int]
    canvas_color: CanvasColor
    resize_is_identity: bool


@dataclass(frozen=True)
class IdealLayout:
    """Phase-one result.

    ``layout`` is in display space; ``source_crop`` is the same crop mapped
    back into pre-orientation source coordinates.
    """

    orientation: Orientation
    layout: Layout
    source_crop: Rect | None
    padding: Padding | None = None

    def finalize(self, request: DecoderRequest, offer: DecoderOffer) -> LayoutPlan:
        return finalize(self, request, offer)


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


def plan(commands: Iterable[Command], source_w: int, source_h: int) -> tuple[IdealLayout, DecoderRequest]:
    """Compute the ideal layout and decoder request for a command list.

    Orientation commands compose left to right. Only the first crop or region,
    the first constrain and the first pad command take effect. A region is
    applied before the constraint, which then fits the region's viewport.

    Raises:
        ZeroSourceDimension: If either source axis is zero.
        ZeroTargetDimension: If the constraint requests a zero target axis.
        EmptyViewport: If a region shows no source pixels.
    """
    orientation = Orientation.IDENTITY
    crop: SourceCrop | Region | None = None
    constraint: Constraint | None = None
    padding: Padding | None = None

    for command in commands:
        if isinstance(command, AutoOrient):
            exif_orientation = Orientation.from_exif(command.exif)
            if exif_orientation is None:
                logger.debug("Ignoring invalid EXIF orientation %s", command.exif)
                continue
            orientation = orientation.compose(exif_orientation)
        elif isinstance(command, Rotate):
            orientation = orientation.compose(command.rotation.orientation)
        elif isinstance(command, Flip):
            orientation = orientation.compose(command.axis.orientation)
        elif isinstance(command, (Crop, Region)):
            selection = command.crop if isinstance(command, Crop) else command
            if crop is None:
                crop = selection
            else:
                logger.debug("Ignoring duplicate crop command %s", selection)
        elif isinstance(command, Constrain):
            if constraint is None:
                constraint = command.constraint
            else:
                logger.debug("Ignoring duplicate constrain command %s", command.constraint)
        elif isinstance(command, Pad):
            if padding is None:
                padding = command.padding
            else:
                logger.debug("Ignoring duplicate pad command %s", command.padding)
        else:
            raise TypeError(f"Unsupported command: {command!r}")

    display = orientation.transform_dimensions(source_w, source_h)

    if isinstance(crop, Region):
        fold = _SequentialFold(display.width, display.height)
        fold.region(crop)
        if constraint is not None:
            fold.constrain(constraint)
        layout = fold.layout()
    elif constraint is not None:
        if crop is not None:
            constraint = constraint.with_source_crop(crop)
        layout = constraint.compute(display.width, display.height)
    elif crop is not None:
        # A constraint without targets resolves the crop and never resizes.
        layout = Constraint(ConstraintMode.DISTORT).with_source_crop(crop).compute(display.width, display.height)
    else:
        layout = Constraint(ConstraintMode.DISTORT).compute(display.width, display.height)

    if padding is not None:
        layout = _apply_padding(layout, padding)

    source_crop = None
    if layout.source_crop is not None:
        source_crop = orientation.transform_rect_to_source(layout.source_crop, source_w, source_h)

    ideal = IdealLayout(orientation=orientation, layout=layout, source_crop=source_crop, padding=padding)
    request = DecoderRequest(crop=source_crop, prescale_target=layout.resize_to, orientation=orientation)
    logger.debug(
        "Planned %sx%s: orientation=%s crop=%s resize_to=%s canvas=%s",
        source_w,
        source_h,
        orientation.name,
        source_crop,
        layout.resize_to,
        layout.canvas,
    )
    return ideal, request


def _apply_padding(layout: Layout, padding: Padding) -> Layout:
    px, py = layout.placement
    return replace(
        layout,
        canvas=Size(
            layout.canvas.width + padding.left + padding.right,
            layout.canvas.height + padding.top + padding.bottom,
        ),
        placement=(px + padding.left, py + padding.top),
        canvas_color=padding.color,
    )


def plan_sequential(
    commands: Iterable[Command], source_w: int, source_h: int
) -> tuple[IdealLayout, DecoderRequest]:
    """Compute the ideal layout as if each command ran on the previous one's output.

    Unlike :func:`plan`, every crop, region and pad takes effect, and each one
    applies to the image as it stands at that point, before or after the
    resize. Orientation commands still fold into a single source orientation,
    wherever they appear, and carry the geometry built so far with them. A
    later constrain replaces an earlier one and drops the crops, regions and
    pads that followed it.

    The result is a single crop, resize and placement, so ``finalize`` works
    on it unchanged. The placement may be negative when the image was cropped
    after resizing.

    Raises:
        ZeroSourceDimension: If either source axis is zero.
        ZeroTargetDimension: If a constraint requests a zero target axis.
        EmptyViewport: If a region collapses or no source pixels remain in view.
    """
    fold = _SequentialFold(source_w, source_h)
    for command in commands:
        if isinstance(command, AutoOrient):
            exif_orientation = Orientation.from_exif(command.exif)
            if exif_orientation is None:
                logger.debug("Ignoring invalid EXIF orientation %s", command.exif)
                continue
            fold.orient(exif_orientation)
        elif isinstance(command, Rotate):
            fold.orient(command.rotation.orientation)
        elif isinstance(command, Flip):
            fold.orient(command.axis.orientation)
        elif isinstance(command, Crop):
            fold.crop(command.crop)
        elif isinstance(command, Region):
            fold.region(command)
        elif isinstance(command, Constrain):
            fold.constrain(command.constraint)
        elif isinstance(command, Pad):
            fold.pad(command.padding)
        else:
            raise TypeError(f"Unsupported command: {command!r}")

    orientation = fold.orientation
    layout = fold.layout()
    source_crop = None
    if layout.source_crop is not None:
        source_crop = orientation.transform_rect_to_source(layout.source_crop, source_w, source_h)

    ideal = IdealLayout(orientation=orientation, layout=layout, source_crop=source_crop)
    request = DecoderRequest(crop=source_crop, prescale_target=layout.resize_to, orientation=orientation)
    logger.debug(
        "Planned %sx%s sequentially: orientation=%s crop=%s resize_to=%s canvas=%s placement=%s",
        source_w,
        source_h,
        orientation.name,
        source_crop,
        layout.resize_to,
        layout.canvas,
        layout.placement,
    )
    return ideal, request


@dataclass
class _Placed:
    """Resized content on its canvas, after a constrain.

    ``crop`` is in frame coordinates. ``content`` and ``window`` are in canvas
    coordinates; only content inside ``window`` is still showing.
    """

    crop: Box
    content: Box
    canvas: Size
    window: Box
    color: CanvasColor


class _SequentialFold:
    """Running geometry of a command list evaluated in order.

    The frame is the source under the orientation accumulated so far. Before a
    constrain, ``viewport`` is the current image in frame coordinates and
    ``visible`` is the part of the frame that shows through it; everything
    else in the viewport is fill.
    """

    def __init__(self, source_w: int, source_h: int) -> None:
        if source_w == 0 or source_h == 0:
            raise ZeroSourceDimension(source_w, source_h)
        self.orientation = Orientation.IDENTITY
        self.frame = Size(source_w, source_h)
        self.viewport: Box = (0, 0, source_w, source_h)
        self.visible: Box = self.viewport
        self.color = CanvasColor.transparent()
        self.placed: _Placed | None = None

    def orient(self, orientation: Orientation) -> None:
        fw, fh = self.frame.as_tuple()
        self.viewport = orientation.box_to_display(self.viewport, fw, fh)
        self.visible = orientation.box_to_display(self.visible, fw, fh)
        placed = self.placed
        if placed is not None:
            cw, ch = placed.canvas.as_tuple()
            placed.crop = orientation.box_to_display(placed.crop, fw, fh)
            placed.content = orientation.box_to_display(placed.content, cw, ch)
            placed.window = orientation.box_to_display(placed.window, cw, ch)
            placed.canvas = orientation.transform_dimensions(cw, ch)
        self.frame = orientation.transform_dimensions(fw, fh)
        self.orientation = self.orientation.compose(orientation)

    def crop(self, crop: SourceCrop) -> None:
        rect = crop.resolve(*self._current_size())
        self._select((rect.x, rect.y, rect.width, rect.height))

    def region(self, region: Region) -> None:
        box = region.resolve(*self._current_size())
        if box[2] <= 0 or box[3] <= 0:
            raise EmptyViewport(f"Region resolves to an empty viewport: {box}")
        self._select(box)
        self._set_color(region.color)

    def pad(self, padding: Padding) -> None:
        w, h = self._current_size()
        self._select(
            (
                -padding.left,
                -padding.top,
                w + padding.left + padding.right,
                h + padding.top + padding.bottom,
            )
        )
        self._set_color(padding.color)

    def constrain(self, constraint: Constraint) -> None:
        vx, vy, vw, vh = self.viewport
        layout = constraint.compute(vw, vh)
        selected = layout.source_crop or Rect(0, 0, vw, vh)
        window = (vx + selected.x, vy + selected.y, selected.width, selected.height)
        crop = _intersect(window, self.visible)
        if crop is None:
            raise EmptyViewport("The constrained area shows no source pixels")

        # Map the visible edges through the window's scale onto the canvas.
        rw, rh = layout.resize_to.as_tuple()
        x0 = _scale(crop[0] - window[0], rw, window[2])
        x1 = _scale(crop[0] + crop[2] - window[0], rw, window[2])
        y0 = _scale(crop[1] - window[1], rh, window[3])
        y1 = _scale(crop[1] + crop[3] - window[1], rh, window[3])
        px, py = layout.placement
        content = (px + x0, py + y0, max(x1 - x0, 1), max(y1 - y0, 1))

        self.placed = _Placed(
            crop=crop,
            content=content,
            canvas=layout.canvas,
            window=(0, 0, layout.canvas.width, layout.canvas.height),
            color=layout.canvas_color if layout.needs_padding() else self.color,
        )

    def layout(self) -> Layout:
        placed = self.placed
        if placed is None:
            vx, vy, vw, vh = self.viewport
            sx, sy, sw, sh = self.visible
            return Layout(
                source=self.frame,
                source_crop=Rect(sx, sy, sw, sh),
                resize_to=Size(sw, sh),
                canvas=Size(vw, vh),
                placement=(sx - vx, sy - vy),
                canvas_color=self.color,
            ).normalize()

        shown = _intersect(placed.content, placed.window)
        if shown is None:
            raise EmptyViewport("No resized content remains on the canvas")

        crop = placed.crop
        content = placed.content
        canvas_box = (0, 0, placed.canvas.width, placed.canvas.height)
        if shown != _intersect(content, canvas_box):
            # Something inside the canvas hides part of the content, so the
            # canvas edge alone cannot clip it. Narrow the crop instead.
            x, w = _narrow(crop[0], crop[2], content[0], content[2], shown[0], shown[2])
            y, h = _narrow(crop[1], crop[3], content[1], content[3], shown[1], shown[3])
            crop = (x, y, w, h)
            content = shown

        return Layout(
            source=self.frame,
            source_crop=Rect(*crop),
            resize_to=Size(content[2], content[3]),
            canvas=placed.canvas,
            placement=(content[0], content[1]),
            canvas_color=placed.color,
        ).normalize()

    # -- Internal -----------------------------------------------------------

    def _current_size(self) -> tuple[int, int]:
        if self.placed is not None:
            return self.placed.canvas.as_tuple()
        return self.viewport[2], self.viewport[3]

    def _select(self, box: Box) -> None:
        """Make ``box``, in current image coordinates, the new image."""
        x, y, w, h = box
        placed = self.placed
        if placed is None:
            vx, vy = self.viewport[0], self.viewport[1]
            self.viewport = (vx + x, vy + y, w, h)
            visible = _intersect(self.visible, self.viewport)
            if visible is None:
                raise EmptyViewport(f"No source pixels remain in viewport {self.viewport}")
            self.visible = visible
            return

        window = _intersect(placed.window, box)
        if window is None:
            raise EmptyViewport(f"No resized content remains in viewport {box}")
        placed.window = _shift(window, -x, -y)
        placed.content = _shift(placed.content, -x, -y)
        placed.canvas = Size(w, h)

    def _set_color(self, color: CanvasColor) -> None:
        if self.placed is not None:
            self.placed.color = color
        else:
            self.color = color


def _intersect(a: Box, b: Box) -> Box | None:
    x0, y0 = max(a[0], b[0]), max(a[1], b[1])
    x1, y1 = min(a[0] + a[2], b[0] + b[2]), min(a[1] + a[3], b[1] + b[3])
    if x1 <= x0 or y1 <= y0:
        return None
    return x0, y0, x1 - x0, y1 - y0


def _shift(box: Box, dx: int, dy: int) -> Box:
    return box[0] + dx, box[1] + dy, box[2], box[3]


def _scale(value: int, num: int, den: int) -> int:
    """``round_half_up(value * num / den)`` in exact integer arithmetic."""
    return (2 * value * num + den) // (2 * den)


def _narrow(start: int, length: int, outer: int, outer_len: int, inner: int, inner_len: int) -> tuple[int, int]:
    """Source span behind ``inner`` when ``outer`` shows ``start..start+length``.

    Rounds outward so the span covers every source pixel that shows.
    """
    lo = start + (inner - outer) * length // outer_len
    hi = start - (-(inner + inner_len - outer) * length // outer_len)
    return lo, hi - lo


def finalize(ideal: IdealLayout, request: DecoderRequest, offer: DecoderOffer) -> LayoutPlan:
    """Reconcile what the decoder did with the ideal layout.

    Never fails: any offer, however partial, yields a consistent plan.
    """
    remaining = offer.orientation_applied.inverse().compose(ideal.orientation)
    trim = _compute_trim(ideal.source_crop, offer)

    decoded = trim.size if trim is not None else offer.dimensions
    oriented = remaining.transform_dimensions(decoded.width, decoded.height)
    resize_to = ideal.layout.resize_to

    logger.debug("Finalized: trim=%s remaining=%s oriented=%s", trim, remaining.name, oriented)
    return LayoutPlan(
        decoder_request=request,
        trim=trim,
        resize_to=resize_to,
        remaining_orientation=remaining,
        canvas=ideal.layout.canvas,
        placement=ideal.layout.placement,
        canvas_color=ideal.layout.canvas_color,
        resize_is_identity=oriented == resize_to,
    )


def _compute_trim(requested: Rect | None, offer: DecoderOffer) -> Rect | None:
    """Trim rect in the decoder's output coordinates, or ``None``."""
    if requested is None:
        return None
    applied = offer.crop_applied
    if applied == requested:
        return None

    # The decoder's buffer before its own orientation, in source orientation.
    raw = offer.orientation_applied.inverse().transform_dimensions(offer.dimensions.width, offer.dimensions.height)
    if raw.width == 0 or raw.height == 0:
        # Nothing decoded, so there is nothing to trim.
        return None
    if applied is None:
        trim = requested.clamp_to(raw.width, raw.height)
    else:
        trim = Rect(
            max(requested.x - applied.x, 0),
            max(requested.y - applied.y, 0),
            requested.width,
            requested.height,
        ).clamp_to(raw.width, raw.height)
    return offer.orientation_applied.transform_rect_to_display(trim, raw.width, raw.height)


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class Pipeline:
    """Ordered command list for one source image.

    Builder methods append a command and return the pipeline, so calls chain::

        ideal, request = Pipeline(4000, 3000).auto_orient(6).fit_pad(800, 800).plan()
    """

    def __init__(self, source_w: int, source_h: int) -> None:
        self.source_w = source_w
        self.source_h = source_h
        self._commands: list[Command] = []

    @property
    def commands(self) -> tuple[Command, ...]:
        return tuple(self._commands)

    def push(self, command: Command) -> Pipeline:
        self._commands.append(command)
        return self

    # -- Orientation --------------------------------------------------------

    def auto_orient(self, exif: int) -> Pipeline:
        return self.push(AutoOrient(exif))

    def rotate_90(self) -> Pipeline:
        return self.push(Rotate(Rotation.ROTATE_90))

    def rotate_180(self) -> Pipeline:
        return self.push(Rotate(Rotation.ROTATE_180))

    def rotate_270(self) -> Pipeline:
        return self.push(Rotate(Rotation.ROTATE_270))

    def flip_h(self) -> Pipeline:
        return self.push(Flip(FlipAxis.HORIZONTAL))

    def flip_v(self) -> Pipeline:
        return self.push(Flip(FlipAxis.VERTICAL))

    # -- Crop ---------------------------------------------------------------

    def crop(self, crop: SourceCrop) -> Pipeline:
        return self.push(Crop(crop))

    def crop_pixels(self, x: int, y: int, width: int, height: int) -> Pipeline:
        return self.crop(SourceCrop.pixels(x, y, width, height))

    def crop_percent(self, x: float, y: float, width: float, height: float) -> Pipeline:
        return self.crop(SourceCrop.percent(x, y, width, height))

    def region(self, region: Region) -> Pipeline:
        return self.push(region)

    def region_pixels(self, left: int, top: int, right: int, bottom: int) -> Pipeline:
        return self.region(Region.crop(left, top, right, bottom))

    # -- Constraint ---------------------------------------------------------

    def constrain(self, constraint: Constraint) -> Pipeline:
        return self.push(Constrain(constraint))

    def distort(self, width: int, height: int) -> Pipeline:
        return self.constrain(Constraint(ConstraintMode.DISTORT, width, height))

    def fit(self, width: int, height: int) -> Pipeline:
        return self.constrain(Constraint(ConstraintMode.FIT, width, height))

    def within(self, width: int, height: int) -> Pipeline:
        return self.constrain(Constraint(ConstraintMode.WITHIN, width, height))

    def fit_crop(self, width: int, height: int) -> Pipeline:
        return self.constrain(Constraint(ConstraintMode.FIT_CROP, width, height))

    def within_crop(self, width: int, height: int) -> Pipeline:
        return self.constrain(Constraint(ConstraintMode.WITHIN_CROP, width, height))

    def fit_pad(self, width: int, height: int) -> Pipeline:
        return self.constrain(Constraint(ConstraintMode.FIT_PAD, width, height))

    def within_pad(self, width: int, height: int) -> Pipeline:
        return self.constrain(Constraint(ConstraintMode.WITHIN_PAD, width, height))

    def aspect_crop(self, width: int, height: int) -> Pipeline:
        return self.constrain(Constraint(ConstraintMode.ASPECT_CROP, width, height))

    # -- Padding ------------------------------------------------------------

    def pad(self, top: int, right: int, bottom: int, left: int, color: CanvasColor | None = None) -> Pipeline:
        if color is None:
            color = CanvasColor.transparent()
        return self.push(Pad(Padding(top, right, bottom, left, color)))

    def pad_uniform(self, amount: int, color: CanvasColor | None = None) -> Pipeline:
        return self.pad(amount, amount, amount, amount, color)

    # -- Planning -----------------------------------------------------------

    def plan(self) -> tuple[IdealLayout, DecoderRequest]:
        return plan(self._commands, self.source_w, self.source_h)

    def plan_sequential(self) -> tuple[IdealLayout, DecoderRequest]:
        return plan_sequential(self._commands, self.source_w, self.source_h)
