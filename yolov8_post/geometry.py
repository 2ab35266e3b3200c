"""
Box overlap helpers used by suppression.

Both axes go through the same 1-D `overlap` on (center, extent) pairs, so
x and y are handled identically.
"""

from .types import BoundingBox


def overlap(c1: float, w1: float, c2: float, w2: float) -> float:
    """
    Length shared by two 1-D intervals given as center and width.

    Negative when the intervals are disjoint (the gap between them).
    """
    left = max(c1 - w1 / 2.0, c2 - w2 / 2.0)
    right = min(c1 + w1 / 2.0, c2 + w2 / 2.0)
    return right - left


def intersection_area(a: BoundingBox, b: BoundingBox) -> float:
    ax, ay = a.center
    bx, by = b.center
    w = overlap(ax, a.width, bx, b.width)
    h = overlap(ay, a.height, by, b.height)
    if w < 0 or h < 0:
        return 0.0
    return w * h


def union_area(a: BoundingBox, b: BoundingBox) -> float:
    return a.area + b.area - intersection_area(a, b)


def iou(a: BoundingBox, b: BoundingBox) -> float:
    """
    Intersection over union. Degenerate pairs with no union area score 0.0.
    """
    union = union_area(a, b)
    if union <= 0:
        return 0.0
    return intersection_area(a, b) / union
