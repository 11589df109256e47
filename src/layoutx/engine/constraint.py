"""Constraint resolution: fit modes, target dimensions, gravity and crops.

Turns a :class:`Constraint` and a source size into a :class:`Layout`: which
region of the source to read, what size to resample it to, and where the
result sits on the output canvas. Pure integer geometry, no pixel access.

Example::

    layout = Constraint(ConstraintMode.FIT_CROP, 400, 300).compute(1000, 500)
    assert layout.resize_to == Size(400, 300)
    assert layout.source_crop is not None
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum

from layoutx.engine.primitives import CanvasColor, Gravity, Rect, Size, SourceCrop, round_half_up

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class LayoutError(ValueError):
    """Base class for layout computation failures."""


class ZeroSourceDimension(LayoutError):
    """Source image has zero width or height."""

    def __init__(self, width: int, height: int) -> None:
        super().__init__(f"Source dimensions must be non-zero, got {width}x{height}")
        self.width = width
        self.height = height


class ZeroTargetDimension(LayoutError):
    """An explicitly requested target width or height is zero."""

    def __init__(self, width: int | None, height: int | None) -> None:
        super().__init__(f"Target dimensions must be non-zero, got width={width} height={height}")
        self.width = width
        self.height = height


class EmptyViewport(LayoutError):
    """A region collapsed to nothing, or no source pixels remain in view."""


# ---------------------------------------------------------------------------
# Modes and results
# ---------------------------------------------------------------------------


class ConstraintMode(StrEnum):
    """How to fit a source image into target dimensions."""

    DISTORT = "distort"
    FIT = "fit"
    WITHIN = "within"
    FIT_CROP = "fit_crop"
    WITHIN_CROP = "within_crop"
    FIT_PAD = "fit_pad"
    WITHIN_PAD = "within_pad"
    ASPECT_CROP = "aspect_crop"

    @property
    def no_upscale(self) -> bool:
        return self in (ConstraintMode.WITHIN, ConstraintMode.WITHIN_CROP, ConstraintMode.WITHIN_PAD)


@dataclass(frozen=True)
class Layout:
    """Resolved geometry for a single resize.

    ``source_crop`` is ``None`` whenever the crop would cover the full source.
    The resized image sits at ``placement`` on ``canvas``. A constraint always
    yields a canvas at least ``resize_to`` with non-negative placement; a
    sequential plan may crop after resizing, leaving a negative placement
    that the canvas clips.
    """

    source: Size
    source_crop: Rect | None
    resize_to: Size
    canvas: Size
    placement: tuple[int, int] = (0, 0)
    canvas_color: CanvasColor = field(default_factory=CanvasColor.transparent)

    def needs_resize(self) -> bool:
        return self.resize_to != self.effective_source()

    def needs_padding(self) -> bool:
        return self.canvas != self.resize_to

    def needs_crop(self) -> bool:
        return self.source_crop is not None

    def effective_source(self) -> Size:
        """Source dimensions after the crop."""
        if self.source_crop is None:
            return self.source
        return self.source_crop.size

    def normalize(self) -> Layout:
        """Drop a ``source_crop`` that covers the full source."""
        if self.source_crop is not None and self.source_crop.is_full(self.source.width, self.source.height):
            return replace(self, source_crop=None)
        return self


# ---------------------------------------------------------------------------
# Constraint
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Constraint:
    """A fit-mode request.

    Either target axis may be ``None``, in which case it is derived from the
    (cropped) source aspect ratio. ``source_crop`` is applied before the mode.
    """

    mode: ConstraintMode
    width: int | None = None
    height: int | None = None
    gravity: Gravity = field(default_factory=Gravity.center)
    canvas_color: CanvasColor = field(default_factory=CanvasColor.transparent)
    source_crop: SourceCrop | None = None

    @classmethod
    def width_only(cls, mode: ConstraintMode, width: int) -> Constraint:
        return cls(mode, width=width)

    @classmethod
    def height_only(cls, mode: ConstraintMode, height: int) -> Constraint:
        return cls(mode, height=height)

    def with_gravity(self, gravity: Gravity) -> Constraint:
        return replace(self, gravity=gravity)

    def with_canvas_color(self, color: CanvasColor) -> Constraint:
        return replace(self, canvas_color=color)

    def with_source_crop(self, crop: SourceCrop | None) -> Constraint:
        return replace(self, source_crop=crop)

    def compute(self, source_w: int, source_h: int) -> Layout:
        """Compute the layout for a source image of the given dimensions.

        Raises:
            ZeroSourceDimension: If either source axis is zero.
            ZeroTargetDimension: If a requested target axis is zero.
        """
        if source_w == 0 or source_h == 0:
            raise ZeroSourceDimension(source_w, source_h)

        user_crop: Rect | None = None
        sw, sh = source_w, source_h
        if self.source_crop is not None:
            user_crop = self.source_crop.resolve(source_w, source_h)
            sw, sh = user_crop.width, user_crop.height

        tw, th = self._resolve_target(sw, sh)
        source = Size(source_w, source_h)

        # A derived axis already carries the source aspect ratio. Re-running the
        # two-axis fit with its rounded value can let the wrong axis constrain.
        if self.width is None or self.height is None:
            return self._single_axis(source, user_crop, sw, sh, tw, th)

        mode = self.mode
        fits = sw <= tw and sh <= th

        if mode == ConstraintMode.DISTORT:
            return self._layout(source, user_crop, (tw, th), (tw, th))

        if mode == ConstraintMode.FIT or (mode == ConstraintMode.WITHIN and not fits):
            resized = _fit_inside(sw, sh, tw, th)
            return self._layout(source, user_crop, resized, resized)

        if mode == ConstraintMode.FIT_CROP or (
            mode == ConstraintMode.WITHIN_CROP and not fits and sw >= tw and sh >= th
        ):
            crop = _combine_crops(user_crop, _crop_to_aspect(sw, sh, tw, th, self.gravity))
            return self._layout(source, crop, (tw, th), (tw, th))

        if mode == ConstraintMode.WITHIN_CROP and not fits:
            # One axis larger, the other smaller: crop to the intersection.
            rw, rh = min(sw, tw), min(sh, th)
            x = self.gravity.offset_1d(sw - rw, horizontal=True)
            y = self.gravity.offset_1d(sh - rh, horizontal=False)
            crop = _combine_crops(user_crop, Rect(x, y, rw, rh))
            return self._layout(source, crop, (rw, rh), (rw, rh))

        if mode == ConstraintMode.FIT_PAD or (mode == ConstraintMode.WITHIN_PAD and not fits):
            rw, rh = _fit_inside(sw, sh, tw, th)
            placement = self.gravity.offset(tw, th, rw, rh)
            return self._layout(source, user_crop, (rw, rh), (tw, th), placement)

        if mode == ConstraintMode.ASPECT_CROP:
            crop = _combine_crops(user_crop, _crop_to_aspect(sw, sh, tw, th, self.gravity))
            return self._layout(source, crop, (crop.width, crop.height), (crop.width, crop.height))

        # WITHIN, WITHIN_CROP and WITHIN_PAD on a source that already fits.
        return self._layout(source, user_crop, (sw, sh), (sw, sh))

    # -- Internal -----------------------------------------------------------

    def _layout(
        self,
        source: Size,
        crop: Rect | None,
        resize_to: tuple[int, int],
        canvas: tuple[int, int],
        placement: tuple[int, int] = (0, 0),
    ) -> Layout:
        return Layout(
            source=source,
            source_crop=crop,
            resize_to=Size(*resize_to),
            canvas=Size(*canvas),
            placement=placement,
            canvas_color=self.canvas_color,
        ).normalize()

    def _single_axis(self, source: Size, user_crop: Rect | None, sw: int, sh: int, tw: int, th: int) -> Layout:
        if self.mode == ConstraintMode.ASPECT_CROP:
            # Aspect ratios match, so there is nothing to crop and no scaling.
            resized = (sw, sh)
        elif self.mode.no_upscale and sw <= tw and sh <= th:
            resized = (sw, sh)
        else:
            resized = (tw, th)

        if self.mode in (ConstraintMode.FIT_PAD, ConstraintMode.WITHIN_PAD):
            placement = self.gravity.offset(tw, th, *resized)
            return self._layout(source, user_crop, resized, (tw, th), placement)
        return self._layout(source, user_crop, resized, resized)

    def _resolve_target(self, sw: int, sh: int) -> tuple[int, int]:
        """Fill in a missing target axis from the source aspect ratio."""
        w, h = self.width, self.height
        if w == 0 or h == 0:
            raise ZeroTargetDimension(w, h)
        if w is not None and h is not None:
            return w, h
        if w is not None:
            return w, max(round_half_up(sh * w / sw), 1)
        if h is not None:
            return max(round_half_up(sw * h / sh), 1), h
        return sw, sh


# ---------------------------------------------------------------------------
# Internal geometry
# ---------------------------------------------------------------------------


def _fit_inside(sw: int, sh: int, tw: int, th: int) -> tuple[int, int]:
    """Largest aspect-preserving size inside the target box."""
    if tw / sw <= th / sh:
        return tw, _proportional(sw, sh, tw, basis_is_width=True, target_w=tw, target_h=th)
    return _proportional(sw, sh, th, basis_is_width=False, target_w=tw, target_h=th), th


def _crop_to_aspect(sw: int, sh: int, tw: int, th: int, gravity: Gravity) -> Rect:
    """Largest crop of the source with the target's aspect ratio."""
    full = Rect(0, 0, sw, sh)
    if sw * th == sh * tw:
        return full

    if sw / sh > tw / th:
        # Source is wider: keep full height, crop width.
        new_w = _proportional(tw, th, sh, basis_is_width=False, target_w=sw, target_h=sh)
        if new_w >= sw:
            return full
        return Rect(gravity.offset_1d(sw - new_w, horizontal=True), 0, new_w, sh)

    new_h = _proportional(tw, th, sw, basis_is_width=True, target_w=sw, target_h=sh)
    if new_h >= sh:
        return full
    return Rect(0, gravity.offset_1d(sh - new_h, horizontal=False), sw, new_h)


def _combine_crops(user_crop: Rect | None, constraint_crop: Rect) -> Rect:
    """Narrow a user crop by a mode crop expressed relative to it."""
    if user_crop is None:
        return constraint_crop
    return Rect(
        user_crop.x + constraint_crop.x,
        user_crop.y + constraint_crop.y,
        min(constraint_crop.width, max(user_crop.width - constraint_crop.x, 0)),
        min(constraint_crop.height, max(user_crop.height - constraint_crop.y, 0)),
    )


def _proportional(
    ratio_w: int,
    ratio_h: int,
    basis: int,
    *,
    basis_is_width: bool,
    target_w: int,
    target_h: int,
) -> int:
    """Free dimension for ``basis`` at ratio ``ratio_w:ratio_h``, with snapping.

    Snaps to the ratio's own dimension or to the target dimension on the free
    axis when the exact value lies within the rounding loss of either, so that
    e.g. 1200x400 fit into 100x33 yields 100x33 and not 99x33.
    """
    ratio = ratio_w / ratio_h
    if basis_is_width:
        snap_amount = _rounding_loss_height(ratio_w, ratio_h, target_h)
        snap_a, snap_b = ratio_h, target_h
        exact = basis / ratio
    else:
        snap_amount = _rounding_loss_width(ratio_w, ratio_h, target_w)
        snap_a, snap_b = ratio_w, target_w
        exact = ratio * basis

    delta_a = abs(exact - snap_a)
    delta_b = abs(exact - snap_b)
    if delta_a <= snap_amount and delta_a <= delta_b:
        value = snap_a
    elif delta_b <= snap_amount:
        value = snap_b
    else:
        value = round_half_up(exact)
    return max(value, 1)


def _rounding_loss_width(ratio_w: int, ratio_h: int, target_width: int) -> float:
    ratio = ratio_w / ratio_h
    recreate_y = ratio_h * (target_width / ratio_w)
    return abs(target_width - round_half_up(recreate_y) * ratio)


def _rounding_loss_height(ratio_w: int, ratio_h: int, target_height: int) -> float:
    ratio = ratio_w / ratio_h
    recreate_x = ratio_w * (target_height / ratio_h)
    return abs(target_height - round_half_up(recreate_x) / ratio)
