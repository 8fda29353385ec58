from typing import Iterator

from .geometry import MapDirection, Vector2d


def clamp(v: int, lo: int, hi: int) -> int:
    return int(min(max(v, lo), hi))


def wrap(x: int, lo: int, hi: int) -> int:
    """Wrap x into the inclusive range [lo, hi]."""
    span = hi - lo + 1
    return int(lo + (x - lo) % span)


def von_neumann(p: Vector2d) -> Iterator[Vector2d]:
    """The four orthogonal neighbours of p, in direction order."""
    for d in MapDirection:
        yield p.add(d.to_unit_vector())
