"""The antigravity easter egg: print a comic and float the display's pixels upwards."""

from __future__ import annotations

import argparse
import sys
import time
from collections.abc import Sequence

# Run-length encoded comic.  A character with bit 7 set gives a repeat count
# (its low seven bits) for the character that follows it.
_COMIC = (
    "+-xkcd.com/353\xb3-+\n"
    "|\xc0 |\n"
    "|\xb4 \\0/\x89 |\n"
    "|\xb2 /\x83 \\\x89 |\n"
    "|\x88 You're flying!\x92 MicroPython!  /|\x88 |\n"
    "|\x8c How?\xa6 \\ \\\x87 |\n"
    "|\x8c /\xb3 |\n"
    "|\x8a 0\xb5 |\n"
    "|\x89 /|\\\xb4 |\n"
    "|\x8a |\xb5 |\n"
    "|\x85-\x84_/_\\\x9e_\x96-|\n"
    "|\xc0 |\n"
    "+\xc0-+\n"
)

ITERATIONS = 5
DEFAULT_INTERVAL_MS = 200
DEFAULT_IMAGE = "00000:00000:00000:00000:99999"


def decode_rle(text: str | bytes) -> str:
    """Expand run-length encoded text; a trailing repeat count is dropped."""
    if isinstance(text, (bytes, bytearray)):
        text = text.decode("latin-1")
    out: list[str] = []
    chars = iter(text)
    for char in chars:
        code = ord(char)
        if code & 0x80:
            following = next(chars, None)
            if following is None:
                break
            out.append(following * (code & 0x7F))
        else:
            out.append(char)
    return "".join(out)


def comic_text() -> str:
    """Return the comic as plain text."""
    return decode_rle(_COMIC)


def lift_pixels(
    pixels: Sequence[Sequence[int]], iteration: int
) -> list[list[int]]:
    """Return a copy of the grid with lit pixels moved up one row where free.

    Rows are indexed top to bottom; later iterations leave more of the bottom
    rows untouched.
    """
    grid = [list(row) for row in pixels]
    for row in range(1, len(grid) - iteration):
        above = grid[row - 1]
        current = grid[row]
        for col, value in enumerate(current):
            if value and not above[col]:
                current[col] = 0
                above[col] = value
    return grid


def _parse_image(text: str) -> list[list[int]]:
    rows = text.split(":")
    if not rows or any(not row or not row.isdigit() for row in rows):
        raise ValueError("image rows must be non-empty digit strings")
    if len({len(row) for row in rows}) != 1:
        raise ValueError("image rows must all have the same length")
    return [[int(digit) for digit in row] for row in rows]


def _format_image(grid: Sequence[Sequence[int]]) -> str:
    return ":".join("".join(str(value) for value in row) for row in grid)


def main(argv: Sequence[str] | None = None) -> int:
    """Print the comic, then animate an image floating upwards."""
    parser = argparse.ArgumentParser(prog="antigravity")
    parser.add_argument(
        "--interval",
        type=int,
        default=DEFAULT_INTERVAL_MS,
        help="delay between animation steps in milliseconds",
    )
    parser.add_argument(
        "--image",
        default=DEFAULT_IMAGE,
        help="rows of brightness digits separated by ':'",
    )
    args = parser.parse_args(argv)
    if args.interval < 0:
        parser.error("interval must not be negative")
    try:
        grid = _parse_image(args.image)
    except ValueError as exc:
        parser.error(str(exc))

    sys.stdout.write(comic_text())
    for iteration in range(ITERATIONS):
        time.sleep(args.interval / 1000)
        grid = lift_pixels(grid, iteration)
    print(_format_image(grid))
    return 0


if __name__ == "__main__":
    sys.exit(main())