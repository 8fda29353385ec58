import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

import numpy as np

from .config import CFG
from .entities import Animal, Fire, Grass, priority_key
from .errors import InvariantViolation, OccupationError
from .geometry import Boundary, MapDirection, Vector2d
from .topology import MapVariant, has_hazards, resolve
from .utils import von_neumann

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ElementView:
    """Read-only copy of one element, safe to hand to another thread."""
    kind: str                       # "animal" | "grass" | "fire"
    position: Vector2d
    id: Optional[int] = None
    energy: Optional[int] = None
    direction: Optional[MapDirection] = None
    genome: Optional[str] = None
    age: Optional[int] = None
    children: Optional[int] = None

    @classmethod
    def of(cls, element) -> "ElementView":
        if isinstance(element, Animal):
            return cls("animal", element.position, element.id, element.energy,
                       element.direction, str(element.genome), element.age, element.children)
        if isinstance(element, Fire):
            return cls("fire", element.position, age=element.age)
        return cls("grass", element.position)


@dataclass(frozen=True)
class MapSnapshot:
    """Immutable view of a map at a day boundary."""
    day: int
    variant: MapVariant
    boundary: Boundary
    bounds: Boundary
    equator_rows: FrozenSet[int]
    cells: Mapping[Vector2d, Tuple[ElementView, ...]]
    stats: Mapping[str, object]

    def is_occupied(self, position: Vector2d) -> bool:
        return position in self.cells

    def objects_at(self, position: Vector2d) -> List[ElementView]:
        return list(self.cells.get(position, ()))

    def object_at(self, position: Vector2d) -> Optional[ElementView]:
        elements = self.cells.get(position, ())
        animals = [e for e in elements if e.kind == "animal"]
        if animals:
            return min(animals, key=lambda e: (-e.energy, e.id))
        return elements[0] if elements else None

    def current_bounds(self) -> Boundary:
        return self.bounds

    def animals(self) -> List[ElementView]:
        found = [e for elements in self.cells.values() for e in elements if e.kind == "animal"]
        return sorted(found, key=lambda e: e.id)


class WorldMap:
    """
    Occupancy index of one simulation: every live element keyed by its cell.

    Several animals may share a cell; grass and fire are exclusive. Cells keep
    insertion order, and the top element of a cell is its strongest animal.
    """

    def __init__(self, cfg: CFG, rng: np.random.Generator):
        self.cfg = cfg
        self.rng = rng
        self.variant = cfg.variant
        self.boundary = Boundary(Vector2d(0, 0), Vector2d(cfg.W - 1, cfg.H - 1))
        self.equator = self._equator_rows()
        self._cells: Dict[Vector2d, List[object]] = {}
        self._grass: Dict[Vector2d, Grass] = {}
        self._fires: Dict[Vector2d, Fire] = {}
        self._bounds: Optional[Boundary] = None

    def _equator_rows(self) -> FrozenSet[int]:
        """Rows closest to the vertical middle of the map."""
        H = self.cfg.H
        n = max(1, int(round(H * self.cfg.EQUATOR_FRAC)))
        mid = (H - 1) / 2
        rows = sorted(range(H), key=lambda y: (abs(y - mid), y))
        return frozenset(rows[:n])

    # ----- structure -----

    def place(self, element) -> None:
        p = element.position
        if not self.boundary.contains(p):
            raise OccupationError(f"{type(element).__name__} at {p} lies outside the map {self.boundary}")
        if isinstance(element, (Grass, Fire)) and (p in self._grass or p in self._fires):
            raise OccupationError(f"cell {p} already holds grass or fire")
        self._insert(element)
        if isinstance(element, Grass):
            self._grass[p] = element
        elif isinstance(element, Fire):
            self._fires[p] = element

    def remove(self, element) -> None:
        p = element.position
        cell = self._cells.get(p)
        if cell is None or element not in cell:
            return
        cell.remove(element)
        if not cell:
            del self._cells[p]
            self._bounds = None
        if self._grass.get(p) is element:
            del self._grass[p]
        elif self._fires.get(p) is element:
            del self._fires[p]

    def move(self, animal: Animal, direction: MapDirection) -> None:
        outcome = resolve(self.variant, self.boundary, animal.position, direction,
                          direction.to_unit_vector())
        old = animal.position
        self.remove(animal)
        animal.position = outcome.position
        animal.direction = outcome.direction
        self._insert(animal)
        logger.debug(f"MOVE id={animal.id} from={old} to={animal.position} dir={animal.direction}")

    def _insert(self, element) -> None:
        p = element.position
        if p not in self._cells:
            self._cells[p] = []
            self._bounds = None
        self._cells[p].append(element)

    # ----- queries -----

    def is_occupied(self, position: Vector2d) -> bool:
        return position in self._cells

    def objects_at(self, position: Vector2d) -> List[object]:
        return list(self._cells.get(position, ()))

    def object_at(self, position: Vector2d):
        elements = self._cells.get(position, ())
        animals = [e for e in elements if isinstance(e, Animal)]
        if animals:
            return min(animals, key=priority_key)
        return elements[0] if elements else None

    def animals_at(self, position: Vector2d) -> List[Animal]:
        return [e for e in self._cells.get(position, ()) if isinstance(e, Animal)]

    def animals(self) -> List[Animal]:
        found = [e for cell in self._cells.values() for e in cell if isinstance(e, Animal)]
        return sorted(found, key=lambda a: a.id)

    def animal_cells(self) -> Dict[Vector2d, List[Animal]]:
        tilemap: Dict[Vector2d, List[Animal]] = {}
        for p, cell in self._cells.items():
            animals = [e for e in cell if isinstance(e, Animal)]
            if animals:
                tilemap[p] = animals
        return tilemap

    def grass_at(self, position: Vector2d) -> Optional[Grass]:
        return self._grass.get(position)

    def fire_at(self, position: Vector2d) -> Optional[Fire]:
        return self._fires.get(position)

    def grass_positions(self) -> List[Vector2d]:
        return sorted(self._grass)

    @property
    def grass_count(self) -> int:
        return len(self._grass)

    @property
    def fires(self) -> List[Fire]:
        return [self._fires[p] for p in sorted(self._fires)]

    def is_equator(self, position: Vector2d) -> bool:
        return position.y in self.equator

    def free_cells(self) -> List[Vector2d]:
        lo, hi = self.boundary.lower_left, self.boundary.upper_right
        return [Vector2d(x, y)
                for y in range(lo.y, hi.y + 1)
                for x in range(lo.x, hi.x + 1)
                if Vector2d(x, y) not in self._cells]

    def current_bounds(self) -> Boundary:
        """Tightest rectangle around occupied cells; the whole map when empty."""
        if self._bounds is None:
            if not self._cells:
                self._bounds = self.boundary
            else:
                positions = list(self._cells)
                lower, upper = positions[0], positions[0]
                for p in positions[1:]:
                    lower = lower.lower_left(p)
                    upper = upper.upper_right(p)
                self._bounds = Boundary(lower, upper)
        return self._bounds

    def check_consistency(self) -> None:
        seen: Dict[int, Vector2d] = {}
        for p, cell in self._cells.items():
            if not cell:
                raise InvariantViolation(f"empty cell list kept at {p}")
            for e in cell:
                if e.position != p:
                    raise InvariantViolation(f"{type(e).__name__} at {e.position} indexed under {p}")
                if isinstance(e, Animal):
                    if e.id in seen:
                        raise InvariantViolation(f"animal {e.id} indexed at {seen[e.id]} and {p}")
                    seen[e.id] = p

    # ----- grass -----

    def spawn_grass(self, count: int) -> List[Grass]:
        """Grow up to ``count`` grass on unoccupied cells, favouring the equator if configured."""
        free = self.free_cells()
        k = min(count, len(free))
        if k <= 0:
            return []

        if self.cfg.GRASS_PLACEMENT == "equator":
            weights = np.array([self.cfg.EQUATOR_WEIGHT if p.y in self.equator else 1.0 for p in free])
            chosen = self.rng.choice(len(free), size=k, replace=False, p=weights / weights.sum())
        else:
            chosen = self.rng.choice(len(free), size=k, replace=False)

        grown = []
        for i in chosen:
            grass = Grass(free[int(i)])
            self.place(grass)
            grown.append(grass)
        return grown

    # ----- fire hazard -----

    @property
    def has_hazards(self) -> bool:
        return has_hazards(self.variant)

    def update_fires(self, day: int) -> None:
        """Age, spread, expire and ignite fires. Only meaningful on the fire variant."""
        if not self.has_hazards:
            return
        cfg = self.cfg

        for fire in self.fires:
            fire.age += 1
            if fire.age > cfg.FIRE_DURATION:
                self.remove(fire)
                logger.debug(f"[{day}] FIRE out pos={fire.position}")

        for fire in self.fires:
            for p in von_neumann(fire.position):
                grass = self._grass.get(p)
                if grass is not None:
                    self._ignite(p, day, "spread")

        if day > 0 and day % cfg.FIRE_FREQUENCY == 0:
            candidates = self.grass_positions() or self.free_cells()
            if candidates:
                p = candidates[int(self.rng.integers(0, len(candidates)))]
                self._ignite(p, day, "ignite")

    def _ignite(self, p: Vector2d, day: int, reason: str) -> None:
        grass = self._grass.get(p)
        if grass is not None:
            self.remove(grass)
        self.place(Fire(p))
        logger.debug(f"[{day}] FIRE {reason} pos={p}")

    def burning_animals(self) -> List[Animal]:
        burning = [a for p in self._fires for a in self.animals_at(p)]
        return sorted(burning, key=lambda a: a.id)

    # ----- observers -----

    def snapshot(self, day: int, stats: Mapping[str, object]) -> MapSnapshot:
        cells = {p: tuple(ElementView.of(e) for e in cell) for p, cell in self._cells.items()}
        return MapSnapshot(
            day=day,
            variant=self.variant,
            boundary=self.boundary,
            bounds=self.current_bounds(),
            equator_rows=self.equator,
            cells=MappingProxyType(cells),
            stats=MappingProxyType(dict(stats)),
        )
