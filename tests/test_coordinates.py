import pytest

from sourcing_agent.core.coordinates import denormalize_x, denormalize_y, to_pixels


def test_corners_map_to_screen_edges():
    assert to_pixels(0, 0) == (0, 0)
    assert to_pixels(1000, 1000) == (1440, 900)
    assert to_pixels(500, 500) == (720, 450)


def test_rounding_to_nearest_pixel():
    # 333/1000 * 1440 = 479.52, 333/1000 * 900 = 299.7
    assert denormalize_x(333, 1440) == 480
    assert denormalize_y(333, 900) == 300


def test_all_grid_points_stay_on_screen_and_are_deterministic():
    for x in range(0, 1001, 37):
        for y in range(0, 1001, 41):
            px, py = to_pixels(x, y)
            assert 0 <= px <= 1440
            assert 0 <= py <= 900
            assert to_pixels(x, y) == (px, py)


def test_custom_screen_size():
    assert to_pixels(250, 750, screen_width=1000, screen_height=2000) == (250, 1500)


def test_non_numeric_input_is_rejected():
    with pytest.raises((TypeError, ValueError)):
        denormalize_x("left")
