"""
Error Taxonomy for the Wind Advisory Core.

Failures fall into two groups:

Hard errors (raised)
--------------------
- ``InvalidInput``: a caller bug such as a non-positive height, a NaN
  coordinate or a malformed direction. Propagates unmodified.
- ``NoDataError``: an operation that cannot produce a meaningful answer
  from an empty sample set.
- ``StaleResult``: a reconciliation result whose generation has been
  superseded. Raised and consumed inside the coordinator only.

Informational status (returned, never raised)
---------------------------------------------
- ``ReconciliationDegraded``: the fallback cascade estimated some or all
  gust values instead of using measured ones.
"""

from dataclasses import dataclass
from typing import Optional


class WindCoreError(Exception):
    """Base class for all errors raised by the core."""


class InvalidInput(WindCoreError, ValueError):
    """Numeric-domain violation detected at a core boundary."""


class NoDataError(WindCoreError):
    """Operation received no samples to work with."""


class StaleResult(WindCoreError):
    """Result belongs to a superseded reconciliation generation."""

    def __init__(self, generation: int, current: int):
        super().__init__(
            f"Generation {generation} superseded by generation {current}"
        )
        self.generation = generation
        self.current = current


@dataclass(frozen=True)
class ReconciliationDegraded:
    """Informational status for a reconciliation that used estimation.

    Attributes
    ----------
    outcome : str
        Name of the cascade outcome that was taken.
    reason : str
        Human-readable explanation for the caller's indicator.
    station_id : str, optional
        Station consulted, if any.
    """
    outcome: str
    reason: str
    station_id: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.outcome}: {self.reason}"
