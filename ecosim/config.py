from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional, Tuple

from .errors import ConfigurationError
from .topology import MapVariant


GRASS_PLACEMENTS = ("uniform", "equator")


@dataclass
class CFG:
    # World
    W: int = 20
    H: int = 20
    SEED: int = 7
    VARIANT: str = "globe"          # globe | torus | fire

    # Animals
    N_ANIMALS: int = 20
    START_ENERGY: int = 30
    GENOME_LENGTH: int = 8
    MUTATIONS: Tuple[int, int] = (0, 2)   # min/max genes replaced in a child
    METABOLIC_COST: int = 1

    # Grass
    GRASS_ENERGY: int = 10
    INITIAL_GRASS: int = 40
    GRASS_PER_DAY: int = 10
    GRASS_PLACEMENT: str = "equator"   # uniform | equator
    EQUATOR_FRAC: float = 0.2          # share of rows forming the equator band
    EQUATOR_WEIGHT: float = 4.0        # equator cell weight vs 1.0 elsewhere

    # Reproduction
    REPRO_THRESHOLD: int = 20
    REPRO_COST_FRAC: float = 0.25

    # Fire hazard (fire variant only)
    FIRE_FREQUENCY: int = 10   # days between ignitions
    FIRE_DURATION: int = 3     # days a burning cell lasts

    # Timing
    DAY_DELAY: float = 0.0           # seconds between days in the engine loop
    N_DAYS: Optional[int] = None     # None -> run until stopped
    STOP_ON_EXTINCTION: bool = False

    @property
    def variant(self) -> MapVariant:
        return MapVariant.parse(self.VARIANT)

    @property
    def cells(self) -> int:
        return self.W * self.H

    def validate(self) -> "CFG":
        """Reject a configuration a simulation could not run on."""
        if self.W <= 0 or self.H <= 0:
            raise ConfigurationError(f"map size must be positive, got {self.W}x{self.H}")
        try:
            self.variant
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        if self.GRASS_PLACEMENT not in GRASS_PLACEMENTS:
            raise ConfigurationError(
                f"unknown grass placement {self.GRASS_PLACEMENT!r}, expected one of {GRASS_PLACEMENTS}")

        non_negative = ("N_ANIMALS", "METABOLIC_COST", "GRASS_ENERGY", "INITIAL_GRASS",
                        "GRASS_PER_DAY", "REPRO_THRESHOLD", "DAY_DELAY")
        for name in non_negative:
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be >= 0, got {getattr(self, name)}")
        positive = ("START_ENERGY", "GENOME_LENGTH", "FIRE_FREQUENCY", "FIRE_DURATION")
        for name in positive:
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be > 0, got {getattr(self, name)}")

        lo, hi = self.MUTATIONS
        if lo < 0 or hi < lo or hi > self.GENOME_LENGTH:
            raise ConfigurationError(
                f"MUTATIONS must satisfy 0 <= min <= max <= GENOME_LENGTH, got {self.MUTATIONS}")
        # parents keep at least 1 energy and pay at least 1, so a child needs both above 1
        if self.REPRO_THRESHOLD < 2:
            raise ConfigurationError(f"REPRO_THRESHOLD must be >= 2, got {self.REPRO_THRESHOLD}")
        if not 0.0 < self.REPRO_COST_FRAC <= 1.0:
            raise ConfigurationError(f"REPRO_COST_FRAC must lie in (0, 1], got {self.REPRO_COST_FRAC}")
        if not 0.0 < self.EQUATOR_FRAC <= 1.0:
            raise ConfigurationError(f"EQUATOR_FRAC must lie in (0, 1], got {self.EQUATOR_FRAC}")
        if self.EQUATOR_WEIGHT <= 0:
            raise ConfigurationError(f"EQUATOR_WEIGHT must be > 0, got {self.EQUATOR_WEIGHT}")
        if self.N_ANIMALS > self.cells:
            raise ConfigurationError(
                f"N_ANIMALS={self.N_ANIMALS} does not fit a {self.W}x{self.H} map")
        if self.INITIAL_GRASS > self.cells:
            raise ConfigurationError(
                f"INITIAL_GRASS={self.INITIAL_GRASS} does not fit a {self.W}x{self.H} map")
        if self.N_DAYS is not None and self.N_DAYS < 0:
            raise ConfigurationError(f"N_DAYS must be >= 0 or None, got {self.N_DAYS}")
        return self

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "CFG":
        """Build a config from a plain mapping; keys are matched case-insensitively."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in values.items():
            name = key.upper()
            if name not in known:
                raise ConfigurationError(f"unknown configuration key {key!r}")
            if name == "MUTATIONS":
                value = tuple(value)
            kwargs[name] = value
        return cls(**kwargs).validate()
