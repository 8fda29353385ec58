class EcosimError(Exception):
    """Base class for errors raised by the simulation core."""


class ConfigurationError(EcosimError, ValueError):
    """Invalid construction parameters; raised before a simulation starts."""


class OccupationError(EcosimError):
    """An exclusive element was placed on a cell that cannot take it."""


class InvariantViolation(EcosimError):
    """The occupancy index and the animals' own positions disagree."""
