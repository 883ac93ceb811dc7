from __future__ import annotations


class ValidationError(ValueError):
    """Illegal input: bad position, occupied cell, unknown id, too few players."""


class StateError(RuntimeError):
    """An entity was operated on outside its valid lifecycle state."""
