"""Image orientation as the D4 dihedral group.

Every orientation decomposes into a clockwise rotation of 0-3 quarter turns
optionally followed by a horizontal flip. The eight elements map one-to-one
onto EXIF orientation tags 1-8:

    ===========  =====  ========  ====  ===========
    Orientation  EXIF   Rotation  Flip  Swaps axes
    ===========  =====  ========  ====  ===========
    IDENTITY     1      0         no    no
    FLIP_H       2      0         yes   no
    ROTATE_180   3      180       no    no
    FLIP_V       4      180       yes   no
    TRANSPOSE    5      90        yes   yes
    ROTATE_90    6      90        no    yes
    TRANSVERSE   7      270       yes   yes
    ROTATE_270   8      270       no    yes
    ===========  =====  ========  ====  ===========

"Source" space is the raw decoded image; "display" space is the image after
the orientation has been applied.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from layoutx.engine.primitives import Rect, Size

if TYPE_CHECKING:
    from layoutx.engine.primitives import Box


class Orientation(Enum):
    """An element of D4, valued as ``(rotation_quarters, flip)``."""

    IDENTITY = (0, False)
    FLIP_H = (0, True)
    ROTATE_180 = (2, False)
    FLIP_V = (2, True)
    TRANSPOSE = (1, True)
    ROTATE_90 = (1, False)
    TRANSVERSE = (3, True)
    ROTATE_270 = (3, False)

    @property
    def rotation(self) -> int:
        """Clockwise quarter turns, 0-3."""
        return self.value[0]

    @property
    def flip(self) -> bool:
        """Whether a horizontal flip follows the rotation."""
        return self.value[1]

    @classmethod
    def from_rotation_flip(cls, rotation: int, flip: bool) -> Orientation:
        return cls((rotation % 4, flip))

    @classmethod
    def from_exif(cls, value: int) -> Orientation | None:
        """Orientation for an EXIF tag, or ``None`` outside 1-8."""
        if 1 <= value <= 8:
            return _EXIF_ORDER[value - 1]
        return None

    def to_exif(self) -> int:
        return _EXIF_ORDER.index(self) + 1

    @property
    def is_identity(self) -> bool:
        return self is Orientation.IDENTITY

    @property
    def swaps_axes(self) -> bool:
        return self.rotation % 2 == 1

    def compose(self, other: Orientation) -> Orientation:
        """Apply ``self`` first, then ``other``. Not commutative."""
        if not self.flip:
            return Orientation.from_rotation_flip(self.rotation + other.rotation, other.flip)
        return Orientation.from_rotation_flip(self.rotation - other.rotation, not other.flip)

    def then(self, other: Orientation) -> Orientation:
        """Alias for :meth:`compose`; reads naturally in chains."""
        return self.compose(other)

    def inverse(self) -> Orientation:
        # Flipped elements are involutions.
        if self.flip:
            return self
        return Orientation.from_rotation_flip(-self.rotation, False)

    def transform_dimensions(self, w: int, h: int) -> Size:
        """Source dimensions to display dimensions."""
        if self.swaps_axes:
            return Size(h, w)
        return Size(w, h)

    def transform_rect_to_source(self, rect: Rect, source_w: int, source_h: int) -> Rect:
        """Map a rect in display space back to source space.

        ``source_w`` and ``source_h`` are the pre-orientation dimensions.
        """
        return Rect(*self.box_to_source((rect.x, rect.y, rect.width, rect.height), source_w, source_h))

    def transform_rect_to_display(self, rect: Rect, source_w: int, source_h: int) -> Rect:
        """Map a rect in source space forward to display space."""
        return Rect(*self.box_to_display((rect.x, rect.y, rect.width, rect.height), source_w, source_h))

    def box_to_source(self, box: Box, source_w: int, source_h: int) -> Box:
        """Like :meth:`transform_rect_to_source` for an ``(x, y, w, h)`` box.

        The origin may be negative or the box may overhang the frame; the
        mapping is the same rigid motion either way.
        """
        rx, ry, rw, rh = box
        sw, sh = source_w, source_h
        if self is Orientation.IDENTITY:
            return rx, ry, rw, rh
        if self is Orientation.FLIP_H:
            return sw - rx - rw, ry, rw, rh
        if self is Orientation.ROTATE_90:
            return ry, sh - rx - rw, rh, rw
        if self is Orientation.TRANSPOSE:
            return ry, rx, rh, rw
        if self is Orientation.ROTATE_180:
            return sw - rx - rw, sh - ry - rh, rw, rh
        if self is Orientation.FLIP_V:
            return rx, sh - ry - rh, rw, rh
        if self is Orientation.ROTATE_270:
            return sw - ry - rh, rx, rh, rw
        return sw - ry - rh, sh - rx - rw, rh, rw

    def box_to_display(self, box: Box, source_w: int, source_h: int) -> Box:
        """Map an ``(x, y, w, h)`` box in a ``source_w`` x ``source_h`` frame forward to display space."""
        display = self.transform_dimensions(source_w, source_h)
        return self.inverse().box_to_source(box, display.width, display.height)


_EXIF_ORDER: tuple[Orientation, ...] = tuple(Orientation)
