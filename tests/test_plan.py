"""Tests for the command pipeline and two-phase decoder negotiation."""

from __future__ import annotations

import itertools

import pytest

from layoutx.engine.constraint import (
    Constraint,
    ConstraintMode,
    EmptyViewport,
    ZeroSourceDimension,
    ZeroTargetDimension,
)
from layoutx.engine.orientation import Orientation
from layoutx.engine.plan import (
    AutoOrient,
    Constrain,
    Crop,
    DecoderOffer,
    Flip,
    FlipAxis,
    IdealLayout,
    Pipeline,
    Region,
    Rotate,
    Rotation,
    finalize,
    plan,
)
from layoutx.engine.primitives import CanvasColor, Rect, Size, SourceCrop

# ---------------------------------------------------------------------------
# Phase one
# ---------------------------------------------------------------------------


class TestPlanOrientation:
    def test_passthrough(self) -> None:
        ideal, request = Pipeline(800, 600).plan()
        assert ideal.orientation is Orientation.IDENTITY
        assert ideal.layout.resize_to == Size(800, 600)
        assert ideal.layout.canvas == Size(800, 600)
        assert ideal.source_crop is None
        assert request.crop is None
        assert request.prescale_target == Size(800, 600)

    def test_orientation_commands_compose_in_order(self) -> None:
        ideal, request = Pipeline(100, 50).auto_orient(6).rotate_90().flip_h().plan()
        expected = Orientation.ROTATE_90.compose(Orientation.ROTATE_90).compose(Orientation.FLIP_H)
        assert ideal.orientation is expected
        assert request.orientation is expected

    def test_invalid_exif_is_ignored(self) -> None:
        with_bad, _ = Pipeline(1000, 500).auto_orient(9).auto_orient(0).fit(400, 300).plan()
        without, _ = Pipeline(1000, 500).fit(400, 300).plan()
        assert with_bad == without

    def test_display_space_is_oriented(self) -> None:
        ideal, _ = Pipeline(4000, 3000).auto_orient(6).plan()
        assert ideal.layout.source == Size(3000, 4000)
        assert ideal.layout.resize_to == Size(3000, 4000)

    def test_rotation_and_flip_commands(self) -> None:
        commands = [Rotate(Rotation.ROTATE_270), Flip(FlipAxis.VERTICAL)]
        ideal, _ = plan(commands, 10, 20)
        assert ideal.orientation is Orientation.ROTATE_270.compose(Orientation.FLIP_V)

    def test_fit_pad_after_exif_rotation(self) -> None:
        ideal, request = Pipeline(4000, 3000).auto_orient(6).fit_pad(800, 800).plan()
        assert ideal.layout.resize_to == Size(600, 800)
        assert ideal.layout.canvas == Size(800, 800)
        assert ideal.layout.placement == (100, 0)
        assert request.prescale_target == Size(600, 800)


class TestPlanCrop:
    def test_crop_only_sets_canvas_to_crop(self) -> None:
        ideal, request = Pipeline(1000, 1000).crop_pixels(100, 100, 200, 200).plan()
        assert ideal.layout.source_crop == Rect(100, 100, 200, 200)
        assert ideal.layout.resize_to == Size(200, 200)
        assert ideal.layout.canvas == Size(200, 200)
        assert request.crop == Rect(100, 100, 200, 200)

    def test_crop_mapped_back_to_source_space(self) -> None:
        ideal, request = Pipeline(400, 300).rotate_90().crop_pixels(10, 20, 100, 50).plan()
        assert ideal.layout.source == Size(300, 400)
        assert ideal.layout.source_crop == Rect(10, 20, 100, 50)
        assert ideal.source_crop == Rect(20, 190, 50, 100)
        assert request.crop == Rect(20, 190, 50, 100)
        assert ideal.layout.resize_to == Size(100, 50)

    @pytest.mark.parametrize("exif", range(1, 9))
    def test_source_crop_is_inverse_transform(self, exif: int) -> None:
        ideal, _ = Pipeline(40, 30).auto_orient(exif).crop_percent(0.1, 0.2, 0.5, 0.4).plan()
        assert ideal.layout.source_crop is not None
        expected = ideal.orientation.transform_rect_to_source(ideal.layout.source_crop, 40, 30)
        assert ideal.source_crop == expected

    def test_crop_merges_into_constraint(self) -> None:
        ideal, _ = Pipeline(1000, 1000).crop_pixels(100, 100, 800, 400).fit_crop(400, 300).plan()
        assert ideal.layout.source_crop == Rect(233, 100, 533, 400)
        assert ideal.layout.resize_to == Size(400, 300)

    def test_crop_command_order_does_not_matter_for_merge(self) -> None:
        before, _ = Pipeline(1000, 1000).crop_pixels(100, 100, 800, 400).fit_crop(400, 300).plan()
        after, _ = Pipeline(1000, 1000).fit_crop(400, 300).crop_pixels(100, 100, 800, 400).plan()
        assert before == after

    def test_full_crop_normalizes_away(self) -> None:
        ideal, request = Pipeline(640, 480).crop_percent(0.0, 0.0, 1.0, 1.0).plan()
        assert ideal.layout.source_crop is None
        assert request.crop is None


class TestPlanFirstWins:
    def test_first_constrain_wins(self) -> None:
        ideal, _ = Pipeline(1000, 500).fit(400, 300).fit(100, 100).plan()
        assert ideal.layout.resize_to == Size(400, 200)

    def test_first_crop_wins(self) -> None:
        commands = [
            Crop(SourceCrop.pixels(2, 2, 8, 8)),
            Crop(SourceCrop.pixels(1, 1, 4, 4)),
        ]
        ideal, _ = plan(commands, 20, 20)
        assert ideal.layout.source_crop == Rect(2, 2, 8, 8)

    def test_first_pad_wins(self) -> None:
        ideal, _ = Pipeline(100, 100).pad_uniform(5).pad_uniform(50).plan()
        assert ideal.layout.canvas == Size(110, 110)

    def test_orientation_is_not_first_wins(self) -> None:
        commands = [AutoOrient(6), Constrain(Constraint(ConstraintMode.FIT, 10, 10)), AutoOrient(6)]
        ideal, _ = plan(commands, 100, 50)
        assert ideal.orientation is Orientation.ROTATE_180


class TestPlanPadding:
    def test_pad_grows_canvas_and_shifts_placement(self) -> None:
        ideal, _ = Pipeline(100, 100).pad(1, 2, 3, 4, CanvasColor.white()).plan()
        assert ideal.layout.resize_to == Size(100, 100)
        assert ideal.layout.canvas == Size(106, 104)
        assert ideal.layout.placement == (4, 1)
        assert ideal.layout.canvas_color == CanvasColor.white()
        assert ideal.padding is not None

    def test_pad_stacks_on_fit_pad(self) -> None:
        ideal, _ = Pipeline(1000, 500).fit_pad(400, 300).pad_uniform(10).plan()
        assert ideal.layout.canvas == Size(420, 320)
        assert ideal.layout.placement == (10, 60)
        assert ideal.layout.canvas_color == CanvasColor.transparent()

    def test_negative_margins_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            Pipeline(10, 10).pad(-1, 0, 0, 0)


class TestPlanRegion:
    def test_region_inside_image_is_a_crop(self) -> None:
        ideal, request = Pipeline(100, 100).region_pixels(10, 10, 60, 60).plan()
        assert ideal.layout.source_crop == Rect(10, 10, 50, 50)
        assert ideal.layout.canvas == Size(50, 50)
        assert ideal.layout.placement == (0, 0)
        assert request.crop == Rect(10, 10, 50, 50)

    def test_region_around_image_is_padding(self) -> None:
        ideal, _ = Pipeline(10, 10).region(Region.padded(2, CanvasColor.white())).plan()
        assert ideal.layout.source_crop is None
        assert ideal.layout.resize_to == Size(10, 10)
        assert ideal.layout.canvas == Size(14, 14)
        assert ideal.layout.placement == (2, 2)
        assert ideal.layout.canvas_color == CanvasColor.white()

    def test_constraint_fits_the_region_viewport(self) -> None:
        ideal, _ = Pipeline(8, 8).region(Region.padded(4)).fit(8, 8).plan()
        assert ideal.layout.source_crop is None
        assert ideal.layout.resize_to == Size(4, 4)
        assert ideal.layout.canvas == Size(8, 8)
        assert ideal.layout.placement == (2, 2)

    def test_region_maps_back_to_source_space(self) -> None:
        ideal, _ = Pipeline(400, 300).auto_orient(6).region_pixels(10, 20, 110, 70).plan()
        assert ideal.layout.source_crop == Rect(10, 20, 100, 50)
        assert ideal.source_crop == Rect(20, 190, 50, 100)

    def test_region_shares_the_crop_slot(self) -> None:
        ideal, _ = Pipeline(100, 100).region_pixels(10, 10, 60, 60).crop_pixels(0, 0, 5, 5).plan()
        assert ideal.layout.source_crop == Rect(10, 10, 50, 50)
        ideal, _ = Pipeline(100, 100).crop_pixels(0, 0, 5, 5).region_pixels(10, 10, 60, 60).plan()
        assert ideal.layout.source_crop == Rect(0, 0, 5, 5)

    def test_padding_applies_after_region(self) -> None:
        ideal, _ = Pipeline(10, 10).region(Region.padded(2)).pad_uniform(1, CanvasColor.black()).plan()
        assert ideal.layout.canvas == Size(16, 16)
        assert ideal.layout.placement == (3, 3)
        assert ideal.layout.canvas_color == CanvasColor.black()

    def test_collapsed_region_rejected(self) -> None:
        with pytest.raises(EmptyViewport):
            Pipeline(100, 100).region_pixels(50, 10, 50, 60).plan()

    def test_region_off_image_rejected(self) -> None:
        with pytest.raises(EmptyViewport):
            Pipeline(100, 100).region_pixels(200, 200, 300, 300).plan()


class TestPlanErrors:
    def test_zero_source(self) -> None:
        with pytest.raises(ZeroSourceDimension):
            Pipeline(0, 100).plan()

    def test_zero_source_crop_only(self) -> None:
        with pytest.raises(ZeroSourceDimension):
            Pipeline(100, 0).crop_pixels(0, 0, 10, 10).plan()

    def test_zero_target(self) -> None:
        with pytest.raises(ZeroTargetDimension):
            Pipeline(100, 100).fit(0, 10).plan()

    def test_unknown_command(self) -> None:
        with pytest.raises(TypeError, match="Unsupported command"):
            plan(["rotate"], 10, 10)  # type: ignore[list-item]


class TestPipelineBuilder:
    def test_commands_are_recorded_in_order(self) -> None:
        pipeline = Pipeline(10, 10).auto_orient(3).crop_pixels(0, 0, 5, 5).within(4, 4)
        assert pipeline.commands == (
            AutoOrient(3),
            Crop(SourceCrop.pixels(0, 0, 5, 5)),
            Constrain(Constraint(ConstraintMode.WITHIN, 4, 4)),
        )

    @pytest.mark.parametrize(
        ("method", "mode"),
        [
            ("distort", ConstraintMode.DISTORT),
            ("fit", ConstraintMode.FIT),
            ("within", ConstraintMode.WITHIN),
            ("fit_crop", ConstraintMode.FIT_CROP),
            ("within_crop", ConstraintMode.WITHIN_CROP),
            ("fit_pad", ConstraintMode.FIT_PAD),
            ("within_pad", ConstraintMode.WITHIN_PAD),
            ("aspect_crop", ConstraintMode.ASPECT_CROP),
        ],
    )
    def test_mode_shortcuts(self, method: str, mode: ConstraintMode) -> None:
        pipeline = getattr(Pipeline(10, 10), method)(4, 3)
        assert pipeline.commands == (Constrain(Constraint(mode, 4, 3)),)

    def test_orientation_shortcuts(self) -> None:
        pipeline = Pipeline(10, 10).rotate_90().rotate_180().rotate_270().flip_h().flip_v()
        assert pipeline.commands == (
            Rotate(Rotation.ROTATE_90),
            Rotate(Rotation.ROTATE_180),
            Rotate(Rotation.ROTATE_270),
            Flip(FlipAxis.HORIZONTAL),
            Flip(FlipAxis.VERTICAL),
        )


# ---------------------------------------------------------------------------
# Phase two
# ---------------------------------------------------------------------------


def _plan(pipeline: Pipeline) -> IdealLayout:
    ideal, _ = pipeline.plan()
    return ideal


class TestFinalize:
    def test_full_decode_without_crop(self) -> None:
        ideal, request = Pipeline(800, 600).fit(400, 300).plan()
        result = ideal.finalize(request, DecoderOffer.full_decode(800, 600))
        assert result.trim is None
        assert result.remaining_orientation is Orientation.IDENTITY
        assert result.resize_to == Size(400, 300)
        assert not result.resize_is_identity

    def test_passthrough_is_identity_resize(self) -> None:
        ideal, request = Pipeline(800, 600).plan()
        result = finalize(ideal, request, DecoderOffer.full_decode(800, 600))
        assert result.resize_is_identity
        assert result.decoder_request == request

    def test_block_aligned_overshoot(self) -> None:
        ideal, request = Pipeline(1000, 1000).crop_pixels(100, 100, 200, 200).plan()
        offer = DecoderOffer(Size(208, 208), crop_applied=Rect(96, 96, 208, 208))
        result = ideal.finalize(request, offer)
        assert result.trim == Rect(4, 4, 200, 200)
        assert result.resize_is_identity

    def test_decoder_ignored_crop(self) -> None:
        ideal, request = Pipeline(1000, 1000).crop_pixels(100, 100, 200, 200).plan()
        result = ideal.finalize(request, DecoderOffer.full_decode(1000, 1000))
        assert result.trim == Rect(100, 100, 200, 200)
        assert result.resize_is_identity

    def test_exact_crop_needs_no_trim(self) -> None:
        ideal, request = Pipeline(1000, 1000).crop_pixels(100, 100, 200, 200).plan()
        offer = DecoderOffer(Size(200, 200), crop_applied=Rect(100, 100, 200, 200))
        assert ideal.finalize(request, offer).trim is None

    def test_trim_clamped_to_decoder_output(self) -> None:
        ideal, request = Pipeline(1000, 1000).crop_pixels(100, 100, 200, 200).plan()
        offer = DecoderOffer(Size(150, 150), crop_applied=Rect(96, 96, 150, 150))
        assert ideal.finalize(request, offer).trim == Rect(4, 4, 146, 146)

    def test_decoder_crop_without_request_is_not_trimmed(self) -> None:
        ideal, request = Pipeline(1000, 1000).plan()
        offer = DecoderOffer(Size(500, 500), crop_applied=Rect(0, 0, 500, 500))
        result = ideal.finalize(request, offer)
        assert result.trim is None
        assert not result.resize_is_identity

    def test_decoder_did_everything(self) -> None:
        ideal, request = Pipeline(400, 300).auto_orient(6).crop_pixels(10, 20, 100, 50).plan()
        offer = DecoderOffer(Size(100, 50), Rect(20, 190, 50, 100), Orientation.ROTATE_90)
        result = ideal.finalize(request, offer)
        assert result.trim is None
        assert result.remaining_orientation is Orientation.IDENTITY
        assert result.resize_is_identity

    def test_decoder_prescaled_needs_resize(self) -> None:
        ideal, request = Pipeline(400, 300).auto_orient(6).crop_pixels(10, 20, 100, 50).plan()
        offer = DecoderOffer(Size(50, 25), Rect(20, 190, 50, 100), Orientation.ROTATE_90)
        result = ideal.finalize(request, offer)
        assert result.trim is None
        assert not result.resize_is_identity

    def test_decoder_oriented_but_did_not_crop(self) -> None:
        ideal, request = Pipeline(400, 300).auto_orient(6).crop_pixels(10, 20, 100, 50).plan()
        offer = DecoderOffer(Size(300, 400), orientation_applied=Orientation.ROTATE_90)
        result = ideal.finalize(request, offer)
        # Trim lands in the decoder's (already rotated) output space.
        assert result.trim == Rect(10, 20, 100, 50)
        assert result.remaining_orientation is Orientation.IDENTITY
        assert result.resize_is_identity

    def test_decoder_did_nothing_with_orientation(self) -> None:
        ideal, request = Pipeline(400, 300).auto_orient(6).crop_pixels(10, 20, 100, 50).plan()
        result = ideal.finalize(request, DecoderOffer.full_decode(400, 300))
        assert result.trim == Rect(20, 190, 50, 100)
        assert result.remaining_orientation is Orientation.ROTATE_90
        assert result.resize_is_identity

    def test_partial_orientation(self) -> None:
        ideal, request = Pipeline(400, 300).auto_orient(6).plan()
        offer = DecoderOffer(Size(400, 300), orientation_applied=Orientation.ROTATE_180)
        result = ideal.finalize(request, offer)
        assert result.remaining_orientation is Orientation.ROTATE_270
        assert Orientation.ROTATE_180.compose(result.remaining_orientation) is ideal.orientation

    def test_composition_passes_through(self) -> None:
        ideal, request = Pipeline(1000, 500).fit_pad(400, 300).pad(1, 2, 3, 4, CanvasColor.black()).plan()
        result = ideal.finalize(request, DecoderOffer.full_decode(1000, 500))
        assert result.canvas == ideal.layout.canvas
        assert result.placement == ideal.layout.placement
        assert result.canvas_color == CanvasColor.black()

    @pytest.mark.parametrize("applied", [Orientation.IDENTITY, Orientation.FLIP_H, Orientation.ROTATE_90])
    def test_empty_decoder_output_is_not_trimmed(self, applied: Orientation) -> None:
        ideal, request = Pipeline(400, 300).crop_pixels(10, 20, 100, 50).plan()
        result = ideal.finalize(request, DecoderOffer(Size(0, 0), None, applied))
        assert result.trim is None
        assert not result.resize_is_identity

    def test_decoder_output_empty_on_one_axis(self) -> None:
        ideal, request = Pipeline(400, 300).auto_orient(6).crop_pixels(10, 20, 100, 50).plan()
        result = ideal.finalize(request, DecoderOffer(Size(0, 300), None, Orientation.FLIP_H))
        assert result.trim is None
        assert Orientation.FLIP_H.compose(result.remaining_orientation) is ideal.orientation

    @pytest.mark.parametrize(("exif", "crop"), list(itertools.product(range(1, 9), [None, (3, 5, 20, 10)])))
    def test_exact_offer_leaves_nothing_to_do(self, exif: int, crop: tuple[int, int, int, int] | None) -> None:
        pipeline = Pipeline(64, 48).auto_orient(exif)
        if crop is not None:
            pipeline = pipeline.crop_pixels(*crop)
        ideal, request = pipeline.plan()
        decoded = ideal.layout.effective_source()
        offer = DecoderOffer(decoded, request.crop, request.orientation)
        result = ideal.finalize(request, offer)
        assert result.trim is None
        assert result.remaining_orientation is Orientation.IDENTITY
        assert result.resize_is_identity == (decoded == ideal.layout.resize_to)
