from PIL import Image

from convert_previews import convert_previews, find_previews, main
from synthetic import make_background


def test_converts_preview_pngs_and_skips_existing(tmp_path):
    make_background().save(tmp_path / "Preview-Plate.png", format="PNG")
    make_background().save(tmp_path / "Preview-Plate-Bike.png", format="PNG")
    make_background().save(tmp_path / "Preview-Plate-Bike.webp", format="WEBP")
    make_background().save(tmp_path / "dubai-plate.png", format="PNG")

    assert [p.name for p in find_previews(tmp_path)] == ["Preview-Plate-Bike.png", "Preview-Plate.png"]

    summary = convert_previews(tmp_path)

    assert summary.converted == 1
    assert summary.skipped == 1
    assert summary.failed == 0
    with Image.open(tmp_path / "Preview-Plate.webp") as image:
        assert image.format == "WEBP"
        assert image.size == make_background().size
    assert not (tmp_path / "dubai-plate.webp").exists()


def test_main_rejects_missing_directory(tmp_path, capsys):
    assert main(["convert_previews.py", str(tmp_path / "nope")]) == 1
    assert "is not a directory" in capsys.readouterr().out
