from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True, order=True)
class Vector2d:
    x: int
    y: int

    def add(self, other: "Vector2d") -> "Vector2d":
        return Vector2d(self.x + other.x, self.y + other.y)

    def precedes(self, other: "Vector2d") -> bool:
        return self.x <= other.x and self.y <= other.y

    def follows(self, other: "Vector2d") -> bool:
        return self.x >= other.x and self.y >= other.y

    def upper_right(self, other: "Vector2d") -> "Vector2d":
        return Vector2d(max(self.x, other.x), max(self.y, other.y))

    def lower_left(self, other: "Vector2d") -> "Vector2d":
        return Vector2d(min(self.x, other.x), min(self.y, other.y))

    def __str__(self) -> str:
        return f"({self.x},{self.y})"


class MapDirection(Enum):
    NORTH = 0
    EAST = 1
    SOUTH = 2
    WEST = 3

    def rotate(self, steps: int) -> "MapDirection":
        # Python's modulo keeps negative steps in range
        return _ORDER[(self.value + steps) % len(_ORDER)]

    def next(self) -> "MapDirection":
        return self.rotate(1)

    def previous(self) -> "MapDirection":
        return self.rotate(-1)

    def opposite(self) -> "MapDirection":
        return self.rotate(2)

    def to_unit_vector(self) -> Vector2d:
        return _UNIT_VECTORS[self]

    def __str__(self) -> str:
        return self.name.capitalize()


_ORDER = tuple(MapDirection)

_UNIT_VECTORS = {
    MapDirection.NORTH: Vector2d(0, 1),
    MapDirection.EAST: Vector2d(1, 0),
    MapDirection.SOUTH: Vector2d(0, -1),
    MapDirection.WEST: Vector2d(-1, 0),
}


def rotate(direction: MapDirection, steps: int) -> MapDirection:
    return direction.rotate(steps)


def to_unit_vector(direction: MapDirection) -> Vector2d:
    return direction.to_unit_vector()


@dataclass(frozen=True)
class Boundary:
    lower_left: Vector2d
    upper_right: Vector2d

    def contains(self, position: Vector2d) -> bool:
        return self.lower_left.precedes(position) and self.upper_right.follows(position)


@dataclass(frozen=True)
class MoveOutcome:
    position: Vector2d
    direction: MapDirection
