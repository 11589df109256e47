"""Geometry primitives shared by the layout engine.

All values are immutable and carry no references to each other. Pixel
quantities are non-negative integers, except in :data:`Box`; fractions are
floats in ``0.0..=1.0``.
"""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from enum import StrEnum

# Signed ``(x, y, width, height)``. Unlike :class:`Rect` the origin may be
# negative, for viewports that extend past the image.
Box = tuple[int, int, int, int]


def round_half_up(value: float) -> int:
    """Round a non-negative float to the nearest integer, ties away from zero.

    Python's built-in ``round`` uses banker's rounding, which disagrees with
    the geometry everywhere a value lands exactly on ``.5``.
    """
    return int(math.floor(value + 0.5))


def _clamp_fraction(value: float) -> float:
    return min(max(value, 0.0), 1.0)


@dataclass(frozen=True)
class Size:
    """Width x height in pixels."""

    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Size dimensions must be non-negative, got {self.width}x{self.height}")

    def as_tuple(self) -> tuple[int, int]:
        return self.width, self.height


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in pixel coordinates."""

    x: int
    y: int
    width: int
    height: int

    def __post_init__(self) -> None:
        if min(self.x, self.y, self.width, self.height) < 0:
            raise ValueError(f"Rect components must be non-negative, got {self}")

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    def clamp_to(self, max_w: int, max_h: int) -> Rect:
        """Clamp this rect to fit within ``(0, 0, max_w, max_h)``.

        Width and height are clamped to at least 1.
        """
        x = min(self.x, max(max_w - 1, 0))
        y = min(self.y, max(max_h - 1, 0))
        w = max(min(self.width, max(max_w - x, 0)), 1)
        h = max(min(self.height, max(max_h - y, 0)), 1)
        return Rect(x, y, w, h)

    def is_full(self, source_w: int, source_h: int) -> bool:
        """Whether this rect covers the full source (no actual crop)."""
        return self.x == 0 and self.y == 0 and self.width == source_w and self.height == source_h


@dataclass(frozen=True)
class SourceCrop:
    """An unresolved crop request: absolute pixels or fractions of the source.

    Build instances with :meth:`pixels`, :meth:`percent`, :meth:`margin_percent`
    or :meth:`margins_percent`.
    """

    x: float
    y: float
    width: float
    height: float
    is_percent: bool = False

    @classmethod
    def pixels(cls, x: int, y: int, width: int, height: int) -> SourceCrop:
        return cls(x, y, width, height, is_percent=False)

    @classmethod
    def percent(cls, x: float, y: float, width: float, height: float) -> SourceCrop:
        """Crop by fraction: ``x``/``y`` are the origin, ``width``/``height`` the extent."""
        return cls(x, y, width, height, is_percent=True)

    @classmethod
    def margin_percent(cls, margin: float) -> SourceCrop:
        """Crop equal margins from all edges. ``0.1`` keeps the center 80%."""
        keep = max(1.0 - 2.0 * margin, 0.0)
        return cls.percent(margin, margin, keep, keep)

    @classmethod
    def margins_percent(cls, top: float, right: float, bottom: float, left: float) -> SourceCrop:
        """Crop specific margins from each edge (CSS order: top, right, bottom, left)."""
        return cls.percent(left, top, max(1.0 - left - right, 0.0), max(1.0 - top - bottom, 0.0))

    def resolve(self, source_w: int, source_h: int) -> Rect:
        """Resolve to a pixel rect clamped to the source bounds."""
        if not self.is_percent:
            return Rect(int(self.x), int(self.y), int(self.width), int(self.height)).clamp_to(source_w, source_h)
        return Rect(
            round_half_up(source_w * _clamp_fraction(self.x)),
            round_half_up(source_h * _clamp_fraction(self.y)),
            round_half_up(source_w * _clamp_fraction(self.width)),
            round_half_up(source_h * _clamp_fraction(self.height)),
        ).clamp_to(source_w, source_h)


@dataclass(frozen=True)
class Gravity:
    """Anchor used to position a crop or padded content.

    Both fractions ``None`` means center. ``(0.0, 0.0)`` is top-left and
    ``(1.0, 1.0)`` is bottom-right.
    """

    x: float | None = None
    y: float | None = None

    def __post_init__(self) -> None:
        if (self.x is None) != (self.y is None):
            raise ValueError("Gravity needs both fractions or neither")

    @classmethod
    def center(cls) -> Gravity:
        return cls()

    @classmethod
    def percentage(cls, x: float, y: float) -> Gravity:
        return cls(x, y)

    @property
    def is_center(self) -> bool:
        return self.x is None

    def offset_1d(self, space: int, *, horizontal: bool) -> int:
        """Offset along one axis given the leftover ``space`` on that axis."""
        if space <= 0:
            return 0
        if self.x is None or self.y is None:
            return space // 2
        fraction = self.x if horizontal else self.y
        return round_half_up(space * _clamp_fraction(fraction))

    def offset(self, outer_w: int, outer_h: int, inner_w: int, inner_h: int) -> tuple[int, int]:
        """Placement of an ``inner`` box within an ``outer`` box."""
        return (
            self.offset_1d(max(outer_w - inner_w, 0), horizontal=True),
            self.offset_1d(max(outer_h - inner_h, 0), horizontal=False),
        )


class ColorSpace(StrEnum):
    TRANSPARENT = "transparent"
    SRGB = "srgb"
    LINEAR = "linear"


def _float_bits(value: float) -> int:
    return int.from_bytes(struct.pack("<d", value), "little")


@dataclass(frozen=True, eq=False)
class CanvasColor:
    """Background fill for padded canvas areas.

    ``SRGB`` channels are 8-bit integers. ``LINEAR`` channels are floats in an
    unspecified linear color space. Equality and hashing are bit-exact.
    """

    space: ColorSpace = ColorSpace.TRANSPARENT
    r: float = 0
    g: float = 0
    b: float = 0
    a: float = 0

    def __post_init__(self) -> None:
        if self.space == ColorSpace.SRGB:
            for channel in (self.r, self.g, self.b, self.a):
                if not isinstance(channel, int) or not 0 <= channel <= 255:
                    raise ValueError(f"sRGB channels must be integers in 0..255, got {channel!r}")

    @classmethod
    def transparent(cls) -> CanvasColor:
        return cls()

    @classmethod
    def srgb(cls, r: int, g: int, b: int, a: int = 255) -> CanvasColor:
        return cls(ColorSpace.SRGB, r, g, b, a)

    @classmethod
    def linear(cls, r: float, g: float, b: float, a: float = 1.0) -> CanvasColor:
        return cls(ColorSpace.LINEAR, float(r), float(g), float(b), float(a))

    @classmethod
    def white(cls) -> CanvasColor:
        return cls.srgb(255, 255, 255)

    @classmethod
    def black(cls) -> CanvasColor:
        return cls.srgb(0, 0, 0)

    def _key(self) -> tuple[object, ...]:
        if self.space == ColorSpace.TRANSPARENT:
            return (self.space,)
        if self.space == ColorSpace.SRGB:
            return (self.space, self.r, self.g, self.b, self.a)
        return (self.space, *(_float_bits(c) for c in (self.r, self.g, self.b, self.a)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CanvasColor):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())
