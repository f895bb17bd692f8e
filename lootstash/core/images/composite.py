"""Runeword composite icons: layout choice, slot geometry and rendering."""

from __future__ import annotations

import io
from collections.abc import Sequence
from dataclasses import dataclass

from PIL import Image

PADDING = 2

LAYOUT_VERTICAL = "vertical"
LAYOUT_GRID_2X2 = "grid_2x2"
LAYOUT_GRID_2X2_CENTER = "grid_2x2_center"
LAYOUT_GRID_2X3 = "grid_2x3"


def choose_layout(count: int) -> str:
    """1-3 and 7+ stack vertically; 4, 5 and 6 use grids."""
    if count == 4:
        return LAYOUT_GRID_2X2
    if count == 5:
        return LAYOUT_GRID_2X2_CENTER
    if count == 6:
        return LAYOUT_GRID_2X3
    return LAYOUT_VERTICAL


@dataclass(frozen=True)
class CompositePlan:
    layout: str
    width: int
    height: int
    positions: tuple[tuple[int, int], ...]


def _centered(x: int, y: int, cell: tuple[int, int], size: tuple[int, int]) -> tuple[int, int]:
    return x + (cell[0] - size[0]) // 2, y + (cell[1] - size[1]) // 2


def compute_slots(sizes: Sequence[tuple[int, int]], padding: int = PADDING) -> CompositePlan:
    """Canvas size and top-left position of each icon, in socket order."""
    if not sizes:
        raise ValueError("no icons to compose")
    layout = choose_layout(len(sizes))
    max_w = max(w for w, _ in sizes)
    max_h = max(h for _, h in sizes)
    cell = (max_w, max_h)

    positions: list[tuple[int, int]] = []
    if layout == LAYOUT_VERTICAL:
        width = max_w
        height = sum(h for _, h in sizes) + padding * (len(sizes) - 1)
        y = 0
        for w, h in sizes:
            positions.append(((width - w) // 2, y))
            y += h + padding
        return CompositePlan(layout, width, height, tuple(positions))

    cols = 2
    rows = 3 if layout == LAYOUT_GRID_2X3 else 2
    width = max_w * cols + padding
    grid_cells = 4 if layout != LAYOUT_GRID_2X3 else 6
    for i, size in enumerate(sizes[:grid_cells]):
        row, col = divmod(i, cols)
        positions.append(_centered(col * (max_w + padding), row * (max_h + padding), cell, size))

    if layout == LAYOUT_GRID_2X2_CENTER:
        height = max_h * 3 + padding * 2
        x = (width - max_w) // 2
        positions.append(_centered(x, max_h * 2 + padding * 2, cell, sizes[4]))
    else:
        height = max_h * rows + padding * (rows - 1)
    return CompositePlan(layout, width, height, tuple(positions))


def render_composite(images: Sequence[Image.Image], padding: int = PADDING) -> Image.Image:
    """Paint the icons onto a transparent RGBA canvas."""
    icons = [img.convert("RGBA") for img in images]
    plan = compute_slots([icon.size for icon in icons], padding)
    canvas = Image.new("RGBA", (plan.width, plan.height), (0, 0, 0, 0))
    for icon, position in zip(icons, plan.positions):
        canvas.paste(icon, position, icon)
    return canvas


def encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def load_image(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img.convert("RGBA")
