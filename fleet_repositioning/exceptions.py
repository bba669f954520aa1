"""Exception hierarchy for fleet repositioning."""

from typing import Tuple


class RepositioningError(Exception):
    """Base exception for all fleet repositioning errors."""


class ConfigMismatchError(RepositioningError, ValueError):
    """Two statistics stores were built with different time-bin configurations.

    Merging such stores would silently misalign time bins, so it is never
    coerced.
    """

    def __init__(
        self,
        message: str,
        *,
        left: Tuple[float, int] = (0.0, 0),
        right: Tuple[float, int] = (0.0, 0),
    ) -> None:
        self.left = left
        self.right = right
        super().__init__(message)
