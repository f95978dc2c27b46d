"""Offline stroke normalization and shape similarity."""
import math

from hana_vocab.models import Point

DEFAULT_POINTS = 32


def normalize_and_resample(strokes: list[list[Point]], n_points: int = DEFAULT_POINTS) -> list[Point]:
    """Flatten strokes into the unit box and downsample to at most n_points.

    Resampling picks points at evenly spaced indices (not evenly spaced along
    the path), always keeping the first and last point.
    """
    points = [p for stroke in strokes for p in stroke]
    if not points:
        return []

    min_x = min(p.x for p in points)
    max_x = max(p.x for p in points)
    min_y = min(p.y for p in points)
    max_y = max(p.y for p in points)
    width = (max_x - min_x) or 1
    height = (max_y - min_y) or 1

    normalized = [Point((p.x - min_x) / width, (p.y - min_y) / height, p.t) for p in points]
    if len(normalized) <= n_points:
        return normalized
    if n_points == 1:
        return normalized[:1]

    last = len(normalized) - 1
    return [normalized[math.floor(i / (n_points - 1) * last)] for i in range(n_points)]


def calculate_similarity(user_points: list[Point], template_points: list[Point]) -> float:
    """Score in [0, 1] from the mean pointwise distance; 1.0 is an exact match."""
    if not user_points or not template_points:
        return 0.0
    length = min(len(user_points), len(template_points))
    total = sum(
        math.hypot(user_points[i].x - template_points[i].x, user_points[i].y - template_points[i].y)
        for i in range(length)
    )
    # 0.1 average distance is a good match, 0.5 or more scores zero
    return max(0.0, 1 - (total / length) * 2)
