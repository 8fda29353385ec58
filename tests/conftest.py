import numpy as np
import pytest

from ecosim.config import CFG
from ecosim.entities import Animal, Genome
from ecosim.geometry import MapDirection, Vector2d
from ecosim.world import WorldMap


def make_cfg(**overrides) -> CFG:
    """Small, quiet config: no random animals, grass, growth or mutation unless asked."""
    values = dict(
        W=10, H=10, SEED=42, VARIANT="globe",
        N_ANIMALS=0, INITIAL_GRASS=0, GRASS_PER_DAY=0,
        MUTATIONS=(0, 0), REPRO_THRESHOLD=100, REPRO_COST_FRAC=0.5,
        GRASS_ENERGY=10, METABOLIC_COST=1,
    )
    values.update(overrides)
    return CFG(**values)


def make_animal(id, x, y, energy=20, genes=(0,), direction=MapDirection.NORTH) -> Animal:
    return Animal(id=id, position=Vector2d(x, y), direction=direction,
                  energy=energy, genome=Genome(tuple(genes)))


@pytest.fixture
def cfg() -> CFG:
    return make_cfg()


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(0)


@pytest.fixture
def world(cfg, rng) -> WorldMap:
    return WorldMap(cfg, rng)
