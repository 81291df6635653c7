"""Normalized [0, 1000] model coordinates to viewport pixels."""

from typing import Tuple

from sourcing_agent.utils.constants import NORMALIZED_RANGE, SCREEN_HEIGHT, SCREEN_WIDTH


def denormalize_x(x: float, screen_width: int = SCREEN_WIDTH) -> int:
    return round(float(x) / NORMALIZED_RANGE * screen_width)


def denormalize_y(y: float, screen_height: int = SCREEN_HEIGHT) -> int:
    return round(float(y) / NORMALIZED_RANGE * screen_height)


def to_pixels(
    x: float,
    y: float,
    screen_width: int = SCREEN_WIDTH,
    screen_height: int = SCREEN_HEIGHT,
) -> Tuple[int, int]:
    return denormalize_x(x, screen_width), denormalize_y(y, screen_height)
