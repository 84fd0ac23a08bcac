"""
Logging Configuration and Reconciliation Audit Trail.

This module provides the package-wide logger factory and an audit log of
reconciliation cycles. Every cycle records which branch of the fallback
cascade was taken, so that an operator can later see when the advisory
was built from estimated gusts rather than measured ones.
"""

import hashlib
import json
import logging
import sys
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Get a logger configured for the wind advisory core.

    Parameters
    ----------
    name : str
        Logger name (typically __name__).
    level : int
        Logging level.

    Returns
    -------
    logging.Logger
        Configured logger instance.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger


def compute_config_hash(config: Dict[str, Any]) -> str:
    """Compute a short deterministic hash of a configuration mapping."""
    config_str = json.dumps(config, sort_keys=True, default=str)
    return hashlib.sha256(config_str.encode()).hexdigest()[:16]


@dataclass
class CycleRecord:
    """Record of one reconciliation cycle.

    Attributes
    ----------
    generation : int
        Generation number assigned to the request.
    location : tuple
        (latitude, longitude) the cycle was run for.
    outcome : str
        Name of the cascade outcome.
    station_id : str, optional
        Station consulted, if any.
    filled_gaps : int
        Number of gust values produced by the estimator.
    discarded : bool
        True when the result arrived after being superseded.
    timestamp : datetime
        When the record was written.
    config_hash : str
        Hash of the reconciliation configuration in effect.
    """
    generation: int
    location: tuple
    outcome: str
    station_id: Optional[str] = None
    filled_gaps: int = 0
    discarded: bool = False
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    config_hash: str = ""


class AuditLogger:
    """Collects reconciliation cycle records for post-hoc review.

    Instances are passed explicitly to whoever needs them; there is no
    global audit handle.

    Thread Safety
    -------------
    All methods are thread-safe.

    Examples
    --------
    >>> audit = AuditLogger()
    >>> audit.record_cycle(CycleRecord(generation=1, location=(38.0, -92.1),
    ...                                outcome="FULLY_ESTIMATED"))
    >>> audit.summary()["outcome_counts"]
    {'FULLY_ESTIMATED': 1}
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self._records: List[CycleRecord] = []
        self._lock = threading.Lock()
        self._logger = get_logger("audit")
        self.config_hash = compute_config_hash(config) if config else ""

    def record_cycle(self, record: CycleRecord) -> None:
        """Append a cycle record and log it."""
        if not record.config_hash:
            record.config_hash = self.config_hash
        with self._lock:
            self._records.append(record)

        log_msg = (
            f"RECONCILIATION | gen={record.generation} | {record.outcome} | "
            f"station={record.station_id or '-'} | filled={record.filled_gaps}"
        )
        if record.discarded:
            self._logger.debug(log_msg + " | discarded (stale)")
        elif record.outcome == "MERGED":
            self._logger.info(log_msg)
        else:
            self._logger.warning(log_msg)

    @property
    def records(self) -> List[CycleRecord]:
        with self._lock:
            return list(self._records)

    def summary(self) -> Dict[str, Any]:
        """Counts of applied outcomes and discarded cycles."""
        outcome_counts: Dict[str, int] = {}
        discarded = 0
        for r in self.records:
            if r.discarded:
                discarded += 1
                continue
            outcome_counts[r.outcome] = outcome_counts.get(r.outcome, 0) + 1
        return {
            "config_hash": self.config_hash,
            "total_cycles": len(self.records),
            "discarded_cycles": discarded,
            "outcome_counts": outcome_counts,
        }

    def export(self, output_path: Path) -> None:
        """Write all cycle records to a JSON file."""
        artifacts = {
            "config_hash": self.config_hash,
            "cycles": [
                {
                    "generation": r.generation,
                    "location": list(r.location),
                    "outcome": r.outcome,
                    "station_id": r.station_id,
                    "filled_gaps": r.filled_gaps,
                    "discarded": r.discarded,
                    "timestamp": r.timestamp.isoformat(),
                    "config_hash": r.config_hash,
                }
                for r in self.records
            ],
        }
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w') as f:
            json.dump(artifacts, f, indent=2)

        self._logger.info(f"Exported reconciliation audit to {output_path}")
