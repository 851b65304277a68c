"""Ecosim exception hierarchy.

All validation failures raised by the simulation core derive from
``EcosimError`` so callers can catch them without resorting to bare
``except Exception`` blocks.  Normal gameplay outcomes (no destination,
no free slot, no prey) are never errors.
"""


class EcosimError(Exception):
    """Root of all Ecosim domain exceptions."""


class SimulationError(EcosimError):
    """Errors raised by the simulation core (grid, organisms, RNG)."""


class InvalidCoordinate(SimulationError, ValueError):
    """A position was built with a negative coordinate."""


class InvalidVisionLevel(SimulationError, ValueError):
    """A neighbourhood was requested for a vision level outside {1, 2, 3}."""


class SlotOccupied(SimulationError):
    """An organism was placed into a cell slot that is already taken."""


class ConfigurationError(EcosimError):
    """Invalid or missing configuration."""


class WorldConfigError(ConfigurationError):
    """A world description could not be turned into a grid."""
