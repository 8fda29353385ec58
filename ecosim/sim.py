import logging
import threading
from collections import Counter
from typing import Dict, Iterable, List, Optional

import numpy as np

from .config import CFG
from .entities import Animal, Genome, priority_key, strongest
from .geometry import MapDirection, Vector2d
from .world import WorldMap

logger = logging.getLogger(__name__)

STAT_KEYS = (
    "day", "animals", "grass", "fires", "free_cells",
    "avg_energy", "avg_age", "avg_lifespan", "avg_children",
    "births", "deaths", "dominant_genome",
)


class Simulation:
    """
    One run of the ecosystem. ``advance_day`` applies a whole day in a fixed
    order (move, feed, die, reproduce, regrow, stats) and then notifies the
    observers with an immutable snapshot of the map.
    """

    def __init__(self, cfg: CFG, observers: Iterable = (), animals: Optional[Iterable[Animal]] = None):
        self.cfg = cfg.validate()
        self.rng = np.random.default_rng(cfg.SEED)
        self.world = WorldMap(cfg, self.rng)
        self.animals: List[Animal] = []
        self.next_id = 0
        self.day = 0
        self.observers = list(observers)
        self._lock = threading.Lock()

        # Metrics
        self.history: List[Dict[str, object]] = []
        self.dead_count = 0
        self.dead_age_sum = 0

        # daily counters
        self.births_today = 0
        self.deaths_today = 0
        self.burned_today = 0

        if animals is None:
            self._init_animals()
        else:
            for a in animals:
                self.add_animal(a)
        self.world.spawn_grass(cfg.INITIAL_GRASS)
        self.stats = self._compute_stats()

    # ----- initialization -----

    def _init_animals(self):
        cfg = self.cfg
        for _ in range(cfg.N_ANIMALS):
            a = Animal(
                id=self._claim_id(),
                position=Vector2d(int(self.rng.integers(0, cfg.W)), int(self.rng.integers(0, cfg.H))),
                direction=MapDirection(int(self.rng.integers(0, 4))),
                energy=cfg.START_ENERGY,
                genome=Genome.random(cfg.GENOME_LENGTH, self.rng),
            )
            self.add_animal(a)

    def _claim_id(self) -> int:
        nid = self.next_id
        self.next_id += 1
        return nid

    def add_animal(self, animal: Animal) -> None:
        """Put an animal on the map; ids handed out later never collide with it."""
        if len(animal.genome) == 0:
            raise ValueError(f"animal {animal.id} has an empty genome")
        self.world.place(animal)
        self.animals.append(animal)
        self.animals.sort(key=lambda a: a.id)
        self.next_id = max(self.next_id, animal.id + 1)
        logger.debug(f"[{self.day}] SPAWN id={animal.id} pos={animal.position} genome={animal.genome}")

    def add_observer(self, observer) -> None:
        self.observers.append(observer)

    def remove_observer(self, observer) -> None:
        if observer in self.observers:
            self.observers.remove(observer)

    # ----- day phases -----

    def move_animals(self):
        for a in self.animals:
            a.step(self.world, self.cfg.METABOLIC_COST)

    def feed_animals(self):
        for p in self.world.grass_positions():
            winner = strongest(self.world.animals_at(p))
            if winner is None:
                continue
            winner.feed(self.cfg.GRASS_ENERGY)
            self.world.remove(self.world.grass_at(p))
            logger.debug(f"[{self.day}] FEED id={winner.id} pos={p} +E={self.cfg.GRASS_ENERGY} energy={winner.energy}")

    def remove_dead(self):
        for a in self.world.burning_animals():
            a.energy = 0
            self.burned_today += 1
            logger.debug(f"[{self.day}] DEATH id={a.id} cause=FIRE pos={a.position} age={a.age}")

        survivors = []
        for a in self.animals:
            if not a.is_dead():
                survivors.append(a)
                continue
            self.world.remove(a)
            a.death_day = self.day
            self.deaths_today += 1
            self.dead_count += 1
            self.dead_age_sum += a.age
            logger.debug(f"[{self.day}] DEATH id={a.id} pos={a.position} age={a.age} children={a.children}")
        self.animals = survivors

    def reproduce_animals(self):
        threshold = self.cfg.REPRO_THRESHOLD
        newborns: List[Animal] = []
        for p, here in sorted(self.world.animal_cells().items()):
            eligible = sorted((a for a in here if a.can_reproduce(threshold)), key=priority_key)
            if len(eligible) < 2:
                continue
            first, second = eligible[:2]
            child = first.reproduce(second, self.cfg, self.rng, self._claim_id(), day=self.day)
            newborns.append(child)
            self.births_today += 1
            logger.debug(f"[{self.day}] REPRO parents=({first.id},{second.id}) child={child.id} "
                         f"pos={p} Echild={child.energy} genome={child.genome}")

        for c in newborns:
            self.world.place(c)
        self.animals.extend(newborns)

    def grow_grass(self):
        self.world.spawn_grass(self.cfg.GRASS_PER_DAY)
        self.world.update_fires(self.day)

    # ----- day cycle -----

    def advance_day(self) -> Dict[str, object]:
        """Run one full day and return its statistics snapshot."""
        with self._lock:
            self.day += 1
            self.births_today = self.deaths_today = self.burned_today = 0

            self.move_animals()
            self.feed_animals()
            self.remove_dead()
            self.reproduce_animals()
            self.grow_grass()

            stats = self.stats = self._compute_stats()
            self.history.append(stats)
            snapshot = self.world.snapshot(self.day, stats)

            message = (f"Day {stats['day']} advanced: {stats['animals']} animals, "
                       f"{stats['grass']} grass, {stats['births']} born, {stats['deaths']} died")
            logger.info(message)
            # observers see days in order, each with its own snapshot
            self._notify(snapshot, message)
        return stats

    def _notify(self, snapshot, message: str):
        for observer in list(self.observers):
            try:
                observer.map_changed(snapshot, message)
            except Exception:
                logger.exception(f"observer {observer!r} failed on day {snapshot.day}")

    @property
    def finished(self) -> bool:
        if self.cfg.N_DAYS is not None and self.day >= self.cfg.N_DAYS:
            return True
        return self.cfg.STOP_ON_EXTINCTION and not self.animals

    # ----- metrics -----

    def find_dominant_genome(self) -> Optional[Genome]:
        """Most frequent genome among live animals; ties go to the lowest id holder."""
        if not self.animals:
            return None
        # Counter keeps first-seen order among equal counts
        counts = Counter(a.genome for a in self.animals)
        return counts.most_common(1)[0][0]

    def _compute_stats(self) -> Dict[str, object]:
        alive = self.animals
        dominant = self.find_dominant_genome()
        stats = dict(
            day=self.day,
            animals=len(alive),
            grass=self.world.grass_count,
            fires=len(self.world.fires),
            free_cells=len(self.world.free_cells()),
            avg_energy=float(np.mean([a.energy for a in alive])) if alive else 0.0,
            avg_age=float(np.mean([a.age for a in alive])) if alive else 0.0,
            avg_lifespan=(self.dead_age_sum / self.dead_count) if self.dead_count else 0.0,
            avg_children=float(np.mean([a.children for a in alive])) if alive else 0.0,
            births=self.births_today,
            deaths=self.deaths_today,
            dominant_genome=str(dominant) if dominant is not None else "",
        )
        return stats
