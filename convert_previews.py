#!/usr/bin/env python3
"""
Convert Preview-*.png backgrounds to WebP (quality 85).

Usage:
    python convert_previews.py public/

Existing .webp files are left alone. After running, point the preview
layouts at the .webp names.
"""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List

from PIL import Image

WEBP_QUALITY = 85
MB = 1024 * 1024


@dataclass
class ConversionSummary:
    converted: int = 0
    skipped: int = 0
    failed: int = 0
    bytes_before: int = 0
    bytes_after: int = 0


def find_previews(directory: Path) -> List[Path]:
    return sorted(p for p in directory.iterdir() if p.name.startswith("Preview-") and p.suffix == ".png")


def convert_previews(directory: Path) -> ConversionSummary:
    """Convert every preview PNG in `directory`, printing a line per file."""
    summary = ConversionSummary()
    files = find_previews(directory)
    print(f"Found {len(files)} Preview PNG files to convert.\n")

    for source in files:
        target = source.with_suffix(".webp")
        if target.exists():
            print(f"  SKIP  {source.name} (WebP already exists)")
            summary.skipped += 1
            continue

        before = source.stat().st_size
        try:
            with Image.open(source) as image:
                image.save(target, format="WEBP", quality=WEBP_QUALITY, method=4)
        except (OSError, ValueError) as e:
            print(f"  FAIL  {source.name}: {e}")
            summary.failed += 1
            continue

        after = target.stat().st_size
        summary.bytes_before += before
        summary.bytes_after += after
        summary.converted += 1
        saved = (1 - after / before) * 100 if before else 0.0
        print(f"  OK    {source.name}  {before / MB:.2f} MB -> {after / MB:.2f} MB  ({saved:.1f}% smaller)")

    return summary


def print_summary(summary: ConversionSummary) -> None:
    saved = summary.bytes_before - summary.bytes_after
    percent = (saved / summary.bytes_before * 100) if summary.bytes_before else 0.0
    print("\n" + "=" * 40)
    print(f"Converted: {summary.converted}  |  Skipped: {summary.skipped}  |  Failed: {summary.failed}")
    print(f"Before:    {summary.bytes_before / MB:.1f} MB")
    print(f"After:     {summary.bytes_after / MB:.1f} MB")
    print(f"Saved:     {saved / MB:.1f} MB  ({percent:.0f}%)")
    print("=" * 40)


def main(argv: List[str]) -> int:
    directory = Path(argv[1]) if len(argv) > 1 else Path("public")
    if not directory.is_dir():
        print(f"Error: {directory} is not a directory")
        return 1
    print_summary(convert_previews(directory))
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
