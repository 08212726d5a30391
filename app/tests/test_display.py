import numpy as np
import pytest

from chip8.display import DISPLAY_HEIGHT, DISPLAY_WIDTH, Display

GLYPH_ZERO = bytes([0xF0, 0x90, 0x90, 0x90, 0xF0])


def test_draw_msb_is_leftmost():
    display = Display()
    collided = display.draw(0, 0, bytes([0b10000001]))
    assert collided is False
    assert display.pixel(0, 0)
    assert display.pixel(7, 0)
    assert not display.pixel(1, 0)


def test_draw_sets_dirty_and_only_consumer_clears_it():
    display = Display()
    assert not display.dirty
    display.draw(0, 0, GLYPH_ZERO)
    assert display.dirty
    display.draw(10, 10, GLYPH_ZERO)
    assert display.dirty
    display.clear_dirty()
    assert not display.dirty


def test_double_draw_restores_and_reports_collision():
    display = Display()
    before = display.frame.copy()
    first = display.draw(5, 3, GLYPH_ZERO)
    second = display.draw(5, 3, GLYPH_ZERO)
    assert first is False
    assert second is True
    assert np.array_equal(display.frame, before)


def test_collision_equal_across_repeated_identical_draws():
    display = Display()
    display.draw(0, 0, bytes([0xFF]))
    first = display.draw(4, 0, bytes([0xFF]))  # overlaps columns 4..7
    display.draw(4, 0, bytes([0xFF]))
    again = display.draw(4, 0, bytes([0xFF]))
    assert first is True
    assert again is True


def test_anchor_wraps():
    display = Display()
    display.draw(DISPLAY_WIDTH + 2, DISPLAY_HEIGHT + 1, bytes([0x80]))
    assert display.pixel(2, 1)


def test_sprite_is_clipped_at_right_edge():
    display = Display()
    display.draw(60, 0, bytes([0xFF]))
    assert all(display.pixel(x, 0) for x in range(60, 64))
    assert not any(display.pixel(x, 0) for x in range(0, 4))


def test_sprite_is_clipped_at_bottom_edge():
    display = Display()
    display.draw(0, 30, bytes([0x80, 0x80, 0x80, 0x80]))
    assert display.pixel(0, 30)
    assert display.pixel(0, 31)
    assert not display.pixel(0, 0)
    assert not display.pixel(0, 1)


def test_clear_blanks_and_marks_dirty():
    display = Display()
    display.draw(0, 0, GLYPH_ZERO)
    display.clear_dirty()
    display.clear()
    assert not display.frame.any()
    assert display.dirty


def test_frame_view_is_read_only():
    display = Display()
    assert display.frame.shape == (DISPLAY_HEIGHT, DISPLAY_WIDTH)
    with pytest.raises(ValueError):
        display.frame[0, 0] = True


def test_empty_sprite_still_marks_dirty():
    display = Display()
    assert display.draw(0, 0, b"") is False
    assert display.dirty
