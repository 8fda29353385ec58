import math
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

import numpy as np

from .geometry import MapDirection, Vector2d

N_TURNS = len(MapDirection)


@dataclass(frozen=True)
class Genome:
    genes: Tuple[int, ...]

    def __post_init__(self):
        object.__setattr__(self, "genes", tuple(int(g) for g in self.genes))

    def __len__(self) -> int:
        return len(self.genes)

    def __getitem__(self, i: int) -> int:
        return self.genes[i]

    def __str__(self) -> str:
        return "".join(str(g) for g in self.genes)

    @classmethod
    def random(cls, length: int, rng: np.random.Generator) -> "Genome":
        return cls(tuple(rng.integers(0, N_TURNS, size=length)))

    @classmethod
    def combine(cls, strong: "Genome", weak: "Genome", e_strong: int, e_weak: int) -> "Genome":
        """
        Stronger parent gives the prefix, weaker parent the remaining suffix.
        The prefix length is proportional to the stronger parent's share of the
        pair's energy and never shorter than half the genome.
        """
        n = len(strong)
        total = e_strong + e_weak
        share = e_strong / total if total > 0 else 0.5
        cut = max(math.ceil(n / 2), int(round(n * share)))
        cut = min(cut, n)
        return cls(strong.genes[:cut] + weak.genes[cut:])

    def mutate(self, rng: np.random.Generator, count: int) -> "Genome":
        if count <= 0:
            return self
        genes = list(self.genes)
        for i in rng.choice(len(genes), size=count, replace=False):
            genes[int(i)] = int(rng.integers(0, N_TURNS))
        return Genome(tuple(genes))


@dataclass(eq=False)
class Grass:
    position: Vector2d

    def __str__(self) -> str:
        return "*"


@dataclass(eq=False)
class Fire:
    position: Vector2d
    age: int = 0

    def __str__(self) -> str:
        return "#"


@dataclass(eq=False)
class Animal:
    id: int
    position: Vector2d
    direction: MapDirection
    energy: int
    genome: Genome
    age: int = 0
    cursor: int = 0
    children: int = 0
    birth_day: int = 0
    death_day: Optional[int] = None
    parents: Tuple[int, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        return {
            MapDirection.NORTH: "^",
            MapDirection.EAST: ">",
            MapDirection.SOUTH: "v",
            MapDirection.WEST: "<",
        }[self.direction]

    def is_dead(self) -> bool:
        return self.energy <= 0

    def next_gene(self) -> int:
        gene = self.genome[self.cursor]
        self.cursor = (self.cursor + 1) % len(self.genome)
        return gene

    def step(self, world, metabolic_cost: int = 1) -> None:
        """Turn by the current gene, move one cell, pay the daily cost and age."""
        new_direction = self.direction.rotate(self.next_gene())
        world.move(self, new_direction)
        self.energy -= metabolic_cost
        self.age += 1

    def feed(self, grass_energy: int) -> None:
        self.energy += grass_energy

    def can_reproduce(self, threshold: int) -> bool:
        return self.energy >= threshold and not self.is_dead()

    def reproduce(self, partner: "Animal", cfg, rng: np.random.Generator,
                  child_id: int, day: int = 0) -> "Animal":
        if partner is self:
            raise ValueError(f"animal {self.id} cannot reproduce with itself")
        if not (self.can_reproduce(cfg.REPRO_THRESHOLD) and partner.can_reproduce(cfg.REPRO_THRESHOLD)):
            raise ValueError(
                f"animals {self.id} and {partner.id} are below the reproduction threshold "
                f"{cfg.REPRO_THRESHOLD} (energy {self.energy}, {partner.energy})")

        strong, weak = sorted((self, partner), key=priority_key)
        genome = Genome.combine(strong.genome, weak.genome, strong.energy, weak.energy)
        lo, hi = cfg.MUTATIONS
        genome = genome.mutate(rng, int(rng.integers(lo, hi + 1)))

        paid = 0
        for parent in (strong, weak):
            cost = reproduction_cost(parent.energy, cfg.REPRO_COST_FRAC)
            parent.energy -= cost
            parent.children += 1
            paid += cost

        return Animal(
            id=child_id,
            position=self.position,
            direction=MapDirection(int(rng.integers(0, N_TURNS))),
            energy=paid,
            genome=genome,
            birth_day=day,
            parents=(strong.id, weak.id),
        )


def reproduction_cost(energy: int, frac: float) -> int:
    """Energy a parent hands to its child; a parent always keeps at least 1."""
    return max(0, min(max(1, int(energy * frac)), energy - 1))


def priority_key(animal: Animal) -> Tuple[int, int]:
    """Highest energy first, lowest id on ties."""
    return (-animal.energy, animal.id)


def strongest(animals: Sequence[Animal]) -> Optional[Animal]:
    return min(animals, key=priority_key, default=None)
