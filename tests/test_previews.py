import pytest

from compositor.previews import (
    PREVIEW_LAYOUTS,
    PreviewKind,
    get_preview_layout,
    get_preview_options,
    layout_from_config,
    layouts_for,
    load_preview_layouts,
)
from compositor.templates import VehicleClass


def test_lookup():
    assert get_preview_layout("car1").image == "Preview-Plate.png"
    assert get_preview_layout("nope") is None


def test_rak_classic_uses_overrides():
    layout = get_preview_layout("car1")
    primary, secondary = layout.plate_stylings("Ras Al Khaimah", VehicleClass.CLASSIC)
    assert primary is layout.rak_classic_styling
    assert secondary is layout.rak_classic_styling_secondary
    assert primary.width == "18.9%"


def test_other_plates_use_regular_stylings():
    layout = get_preview_layout("car1")
    assert layout.plate_stylings("rak", VehicleClass.PRIVATE) == (layout.plate_styling, layout.plate_styling_secondary)
    assert layout.plate_stylings("dubai", "classic") == (layout.plate_styling, layout.plate_styling_secondary)


def test_missing_override_falls_back_to_regular_styling():
    layout = get_preview_layout("car3")
    primary, secondary = layout.plate_stylings("rak", "classic")
    assert primary is layout.plate_styling
    assert secondary is layout.rak_classic_styling_secondary


def test_mobile_variant():
    layout = get_preview_layout("car1")
    assert layout.for_device(mobile=True).image == "Preview-Platem.png"
    assert layout.for_device(mobile=False) is layout


def test_every_layout_has_mobile_art():
    for layout in PREVIEW_LAYOUTS.values():
        mobile = layout.for_device(mobile=True)
        assert mobile is not layout
        assert mobile.id == layout.id
        assert mobile.kind == layout.kind
        assert mobile.image != layout.image


def test_mobile_inherits_what_it_does_not_override():
    layout = get_preview_layout("car2")
    mobile = layout.for_device(mobile=True)
    assert mobile.image == "Preview-Plate2m.png"
    assert mobile.plate_styling.width == "21%"
    # car2 mobile art has no RAK classic primary of its own
    assert mobile.rak_classic_styling is layout.rak_classic_styling
    assert get_preview_layout("bike2").for_device(mobile=True).image == "Preview-Plate-Bike2m.png"


def test_bike_layouts_have_no_text_stylings():
    for layout in layouts_for("bike"):
        assert layout.kind == PreviewKind.BIKE
        assert layout.is_bike
        assert layout.price_styling is None


def test_layouts_for_classes():
    classic_ids = [layout.id for layout in layouts_for(VehicleClass.CLASSIC)]
    assert classic_ids[0] == "classic1"
    assert len(classic_ids) == 13
    assert [layout.id for layout in layouts_for("bike")] == ["bike1", "bike2", "bike3", "bike4"]
    assert len(layouts_for("private")) == 41
    assert all(layout.kind == PreviewKind.CAR for layout in layouts_for("private"))


def test_options():
    options = get_preview_options()
    assert len(options) == len(PREVIEW_LAYOUTS)
    car1 = next(option for option in options if option["id"] == "car1")
    assert car1 == {"id": "car1", "kind": "car", "image": "Preview-Plate.png", "has_mobile": True}


def test_rotations_come_from_the_table():
    bike2 = get_preview_layout("bike2").plate_styling.to_placement()
    assert bike2.rotation_degrees == -6.0
    # rotateZ(0deg) followed by rotate(-2deg)
    classic2 = get_preview_layout("classic2")
    primary, _ = classic2.plate_stylings("rak", "classic")
    assert primary.to_placement().rotation_degrees == -2.0
    mobile_primary, _ = classic2.for_device(mobile=True).plate_stylings("rak", "classic")
    assert mobile_primary.to_placement().rotation_degrees == 2.0


def test_load_layouts_from_custom_file(tmp_path):
    path = tmp_path / "layouts.yaml"
    path.write_text(
        "car:\n"
        "  - id: garage\n"
        "    image: Garage.png\n"
        '    plate_styling: {top: "60%", left: "40%", width: "12%"}\n'
        "    mobile:\n"
        "      image: Garagem.png\n"
        "bike: []\n",
        encoding="utf-8",
    )
    layouts = load_preview_layouts(path)
    assert list(layouts) == ["garage"]
    garage = layouts["garage"]
    assert garage.kind == PreviewKind.CAR
    assert garage.for_device(mobile=True).image == "Garagem.png"
    assert garage.for_device(mobile=True).plate_styling is garage.plate_styling


def test_layout_without_plate_styling_is_rejected():
    with pytest.raises(ValueError):
        layout_from_config({"id": "broken", "image": "x.png"}, PreviewKind.CAR)
