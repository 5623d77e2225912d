"""Window size advice for showing a captured image."""

from typing import NamedTuple, Optional, Tuple

# Logical units around the image on each side
PADDING = 20
# Extra height reserved for the toolbar
TOOLBAR_HEIGHT = 41
# Size changes at or below this are ignored
RESIZE_EPSILON = 1.0


class GeometryAdvice(NamedTuple):
    width: float
    height: float
    recenter: bool = True


def compute_target_size(
    image_width: int,
    image_height: int,
    display_scale: float,
    current_size: Tuple[float, float],
    work_area_size: Tuple[float, float],
) -> Optional[GeometryAdvice]:
    """
    Compute a window size that fits the captured image.

    The image is converted from physical pixels to logical units, padded,
    and clamped to the work area. The window never shrinks: if it is
    already larger than needed its current size wins.

    Args:
        image_width, image_height: Image size in physical pixels
        display_scale: Device pixel ratio of the display (<= 0 means 1.0)
        current_size: Current (width, height) of the window, logical units
        work_area_size: Available (width, height) of the display, logical units

    Returns:
        GeometryAdvice with the new size and a re-center request, or None
        when the window is already the right size.
    """
    scale = display_scale if display_scale > 0 else 1.0
    current_width, current_height = current_size
    area_width, area_height = work_area_size

    desired_width = image_width / scale + PADDING * 2
    desired_height = image_height / scale + PADDING * 2 + TOOLBAR_HEIGHT

    width = max(min(desired_width, area_width), current_width)
    height = max(min(desired_height, area_height), current_height)

    if abs(width - current_width) > RESIZE_EPSILON or abs(height - current_height) > RESIZE_EPSILON:
        return GeometryAdvice(width, height, True)
    return None
