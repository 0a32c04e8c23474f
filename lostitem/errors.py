"""Errors raised across the mapping/draw boundary."""


class LoadError(RuntimeError):
    """The mapping table could not be acquired or parsed."""


class EmptyMappingError(RuntimeError):
    """A draw was attempted against a mapping with no entries."""
