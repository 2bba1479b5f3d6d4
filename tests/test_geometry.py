import math

import pytest

from compositor.geometry import (
    DEFAULT_PLATE_FILTER,
    PlacementDescriptor,
    StylingDescriptor,
    TextAlign,
    TextDirection,
    parse_filter,
    parse_percent,
    parse_rotation,
    resolve_placement,
    resolve_styling,
    resolve_text_alignment,
    resolve_text_anchor,
    round_half_up,
)


def test_parse_percent():
    assert parse_percent("67%", 0.5) == pytest.approx(0.67)
    assert parse_percent("74.3%", 0.5) == pytest.approx(0.743)
    assert parse_percent(" 12 % ", 0.5) == pytest.approx(0.12)


def test_parse_percent_zero_is_a_value():
    assert parse_percent("0%", 0.5) == 0.0


def test_parse_percent_falls_back_to_default():
    assert parse_percent(None, 0.15) == 0.15
    assert parse_percent("", 0.15) == 0.15
    assert parse_percent("auto", 0.15) == 0.15


def test_parse_percent_clamps():
    assert parse_percent("150%", 0.5) == 1.0
    assert parse_percent("-20%", 0.5) == 0.0


def test_parse_rotation_reads_rotate_z():
    transform = "translate(-50%, -50%) perspective(600px) rotateX(2deg) rotateY(-17deg) rotateZ(2deg)"
    assert parse_rotation(transform) == 2.0


def test_parse_rotation_plain_rotate_and_ignores_tilts():
    assert parse_rotation("rotate(-6deg)") == -6.0
    assert parse_rotation("translate(-50%, -50%) perspective(600px) rotateY(-25deg)") == 0.0
    assert parse_rotation(None) == 0.0


def test_rotate_property_used_when_transform_has_no_rotation():
    styling = StylingDescriptor.from_css({"transform": "translate(-50%, -50%)", "rotate": "-6deg"})
    assert styling.to_placement().rotation_degrees == -6.0


def test_rotations_compose():
    transform = "translate(-50%, -50%) perspective(600px) rotateY(35deg) rotateX(0deg) rotateZ(0deg) rotate(2deg)"
    assert parse_rotation(transform) == 2.0
    styling = StylingDescriptor.from_css({"transform": "translate(-50%, -50%) rotate(1deg)", "rotate": "-3deg"})
    assert styling.to_placement().rotation_degrees == -2.0


def test_parse_filter():
    ops = parse_filter("brightness(0.92) contrast(105%)")
    assert [name for name, _ in ops] == ["brightness", "contrast"]
    assert ops[0][1] == pytest.approx(0.92)
    assert ops[1][1] == pytest.approx(1.05)


def test_parse_filter_skips_unsupported_functions():
    assert parse_filter("blur(2px) brightness(0.5)") == [("brightness", 0.5)]
    assert parse_filter("none") == []
    assert parse_filter(None) == []


def test_placement_defaults():
    placement = StylingDescriptor().to_placement()
    assert placement.position_x == 0.5
    assert placement.position_y == 0.5
    assert placement.width_fraction == 0.15
    assert placement.rotation_degrees == 0.0


def test_resolve_placement_is_center_based():
    placement = PlacementDescriptor(position_x=0.5, position_y=0.25, width_fraction=0.2, rotation_degrees=90)
    resolved = resolve_placement(placement, 1000, 400)
    assert resolved.center_x == 500
    assert resolved.center_y == 100
    assert resolved.width == 200
    assert resolved.rotation_radians == pytest.approx(math.pi / 2)


def test_resolve_styling_uses_default_filter():
    resolved = resolve_styling(StylingDescriptor(top="67%", left="33.5%", width="13%"), 7680, 4320)
    assert resolved.center_x == pytest.approx(2572.8)
    assert resolved.center_y == pytest.approx(2894.4)
    assert resolved.width == pytest.approx(998.4)
    assert resolved.filter == DEFAULT_PLATE_FILTER


def test_resolved_size_keeps_aspect():
    resolved = resolve_placement(PlacementDescriptor(0.5, 0.5, 0.25), 400, 300)
    assert resolved.size_for(0.5) == (100, 50)


def test_placement_rejects_bad_values():
    with pytest.raises(ValueError):
        PlacementDescriptor(position_x=float("nan"), position_y=0.5)
    with pytest.raises(ValueError):
        PlacementDescriptor(position_x=0.5, position_y=0.5, width_fraction=0)


def test_text_anchor_defaults():
    assert resolve_text_anchor(StylingDescriptor(), 1000, 500) == (500, 450)


def test_text_alignment_inferred_from_translate():
    assert resolve_text_alignment(StylingDescriptor(transform="translate(-50%, -50%)")) == TextAlign.CENTER
    assert resolve_text_alignment(StylingDescriptor(transform="translate(0%, -50%)")) == TextAlign.LEFT
    assert resolve_text_alignment(StylingDescriptor()) == TextAlign.LEFT


def test_text_alignment_start_edge_follows_direction():
    styling = StylingDescriptor(transform="translate(0%, -50%)", direction=TextDirection.RTL)
    assert resolve_text_alignment(styling) == TextAlign.RIGHT


def test_explicit_alignment_wins():
    styling = StylingDescriptor.from_css({"transform": "translate(-50%, -50%)", "align": "right"})
    assert resolve_text_alignment(styling) == TextAlign.RIGHT


def test_from_css_reads_text_scale_and_ignores_unknown_keys():
    styling = StylingDescriptor.from_css({"top": "92%", "textScale": 2.85, "color": "#ffffff"})
    assert styling.top == "92%"
    assert styling.text_scale == 2.85
    assert StylingDescriptor.from_css(None) is None


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(-2.5) == -2
