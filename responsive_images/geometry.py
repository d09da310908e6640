"""
Geometry resolution for the responsive image engine

Pure functions that turn the original dimensions and the requested
width/height/breakpoints into the list of target widths and the
dimensions reported back to the page.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .errors import InvalidImageError
from .models import DEFAULT_BREAKPOINTS


@dataclass(frozen=True)
class Geometry:
    """Resolved target sizes and reported dimensions"""
    sizes: List[int]
    final_width: int
    final_height: int
    aspect_ratio: float


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values, matching browser-side math"""
    return int(math.floor(value + 0.5))


def _positive(value: float) -> int:
    return max(1, round_half_up(value))


def aspect_ratio(original_width: int, original_height: int) -> float:
    if not original_width or not original_height or original_width < 0 or original_height < 0:
        raise InvalidImageError(f"Invalid image dimensions: {original_width}x{original_height}")
    return original_width / original_height


def resolve_geometry(original_width: int, original_height: int,
                     width: Optional[int] = None, height: Optional[int] = None,
                     breakpoints: Iterable[int] = DEFAULT_BREAKPOINTS) -> Geometry:
    """Resolve target sizes and final reported dimensions"""
    ratio = aspect_ratio(original_width, original_height)

    if width:
        sizes = [width]
    elif height:
        sizes = [_positive(height * ratio)]
    else:
        candidates = {bp for bp in breakpoints if 0 < bp <= original_width}
        candidates.add(original_width)
        sizes = sorted(candidates)

    if width and height:
        final_width, final_height = width, height
    elif width:
        final_width, final_height = width, _positive(width / ratio)
    elif height:
        final_width, final_height = _positive(height * ratio), height
    else:
        final_width, final_height = original_width, original_height

    return Geometry(sizes=sizes, final_width=final_width,
                    final_height=final_height, aspect_ratio=ratio)


def variant_height(size: int, ratio: float, height: Optional[int] = None) -> int:
    """Height of the variant generated at `size` pixels wide"""
    if height:
        # Fixed whether h was requested alone or together with w
        return height
    return _positive(size / ratio)


def calculate_breakpoints(original_width: int, min_width: int = 640,
                          max_width: Optional[int] = None, count: int = 5) -> List[int]:
    """Evenly spaced breakpoints between min_width and max_width"""
    max_width = original_width if max_width is None else max_width
    if count < 2:
        widths = {max_width}
    else:
        step = (max_width - min_width) / (count - 1)
        widths = {round_half_up(min_width + step * i) for i in range(count)}

    breakpoints = {w for w in widths if 0 < w <= original_width}
    if original_width >= min_width:
        breakpoints.add(original_width)
    return sorted(breakpoints)
