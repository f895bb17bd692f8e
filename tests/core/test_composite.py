"""Runeword composite layout and rendering."""

import pytest
from PIL import Image

from lootstash.core.images.composite import (
    LAYOUT_GRID_2X2,
    LAYOUT_GRID_2X2_CENTER,
    LAYOUT_GRID_2X3,
    LAYOUT_VERTICAL,
    choose_layout,
    compute_slots,
    encode_png,
    load_image,
    render_composite,
)


def _icon(color: tuple[int, int, int, int], size: tuple[int, int] = (28, 28)) -> Image.Image:
    return Image.new("RGBA", size, color)


class TestChooseLayout:
    @pytest.mark.parametrize(
        "count,expected",
        [
            (1, LAYOUT_VERTICAL),
            (2, LAYOUT_VERTICAL),
            (3, LAYOUT_VERTICAL),
            (4, LAYOUT_GRID_2X2),
            (5, LAYOUT_GRID_2X2_CENTER),
            (6, LAYOUT_GRID_2X3),
            (7, LAYOUT_VERTICAL),
        ],
    )
    def test_by_count(self, count: int, expected: str) -> None:
        assert choose_layout(count) == expected


class TestComputeSlots:
    def test_vertical(self) -> None:
        plan = compute_slots([(28, 28)] * 3)
        assert (plan.width, plan.height) == (28, 28 * 3 + 4)
        assert plan.positions == ((0, 0), (0, 30), (0, 60))

    def test_four_runes_grid(self) -> None:
        plan = compute_slots([(28, 28)] * 4)
        assert plan.layout == LAYOUT_GRID_2X2
        assert (plan.width, plan.height) == (58, 58)
        assert plan.positions == ((0, 0), (30, 0), (0, 30), (30, 30))

    def test_five_runes_grid_plus_center(self) -> None:
        plan = compute_slots([(28, 28)] * 5)
        assert plan.layout == LAYOUT_GRID_2X2_CENTER
        assert (plan.width, plan.height) == (58, 28 * 3 + 4)
        assert plan.positions[4] == (15, 60)

    def test_six_runes(self) -> None:
        plan = compute_slots([(28, 28)] * 6)
        assert (plan.width, plan.height) == (58, 88)
        assert plan.positions[5] == (30, 60)

    def test_small_icon_centered_in_cell(self) -> None:
        plan = compute_slots([(28, 28), (20, 20), (28, 28), (28, 28)])
        assert plan.positions[1] == (30 + 4, 4)

    def test_empty_raises(self) -> None:
        with pytest.raises(ValueError):
            compute_slots([])


class TestRender:
    def test_png_round_trip(self) -> None:
        icons = [_icon((255, 0, 0, 255)), _icon((0, 255, 0, 255)), _icon((0, 0, 255, 255)), _icon((9, 9, 9, 255))]
        canvas = render_composite(icons)
        assert canvas.mode == "RGBA"
        assert canvas.size == (58, 58)
        assert canvas.getpixel((1, 1)) == (255, 0, 0, 255)
        assert canvas.getpixel((31, 31)) == (9, 9, 9, 255)
        # padding stays transparent
        assert canvas.getpixel((29, 1))[3] == 0

        data = encode_png(canvas)
        assert data.startswith(b"\x89PNG")
        assert load_image(data).size == (58, 58)

    def test_same_input_same_bytes(self) -> None:
        icons = [_icon((200, 10, 10, 255))] * 5
        assert encode_png(render_composite(icons)) == encode_png(render_composite(icons))
