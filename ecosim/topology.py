"""
Boundary resolution for the supported map variants.

Every variant maps a proposed step onto an in-bounds position and a
(possibly changed) direction. The variants form a closed set selected by
configuration; each one is a plain function registered in ``_RESOLVERS``.
"""
from enum import Enum
from typing import Callable, Dict

from .geometry import Boundary, MapDirection, MoveOutcome, Vector2d
from .utils import clamp, wrap


class MapVariant(Enum):
    GLOBE = "globe"    # wrap left/right, bounce off the poles
    TORUS = "torus"    # wrap on both axes
    FIRE = "fire"      # globe boundary plus episodic fires

    @classmethod
    def parse(cls, value) -> "MapVariant":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            names = ", ".join(v.value for v in cls)
            raise ValueError(f"unknown map variant {value!r}, expected one of: {names}") from None


def _resolve_globe(bounds: Boundary, proposed: Vector2d, direction: MapDirection) -> MoveOutcome:
    lo, hi = bounds.lower_left, bounds.upper_right
    x, y = proposed.x, proposed.y
    if y < lo.y or y > hi.y:
        y = clamp(y, lo.y, hi.y)
        direction = direction.opposite()
    if x < lo.x or x > hi.x:
        x = wrap(x, lo.x, hi.x)
    return MoveOutcome(Vector2d(x, y), direction)


def _resolve_torus(bounds: Boundary, proposed: Vector2d, direction: MapDirection) -> MoveOutcome:
    lo, hi = bounds.lower_left, bounds.upper_right
    x = wrap(proposed.x, lo.x, hi.x)
    y = wrap(proposed.y, lo.y, hi.y)
    return MoveOutcome(Vector2d(x, y), direction)


_RESOLVERS: Dict[MapVariant, Callable[[Boundary, Vector2d, MapDirection], MoveOutcome]] = {
    MapVariant.GLOBE: _resolve_globe,
    MapVariant.TORUS: _resolve_torus,
    MapVariant.FIRE: _resolve_globe,
}


def resolve(variant: MapVariant, bounds: Boundary, position: Vector2d,
            direction: MapDirection, displacement: Vector2d) -> MoveOutcome:
    """Realized position and direction after moving ``displacement`` from ``position``."""
    return _RESOLVERS[variant](bounds, position.add(displacement), direction)


def has_hazards(variant: MapVariant) -> bool:
    return variant is MapVariant.FIRE
