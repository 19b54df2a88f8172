"""Historical run statistics used by the ratio-adjusted estimator."""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

import msgspec

from core_types import NonNegativeInt, PathLike
from reducer_estimation.errors import HistoryLookupError
from reducer_estimation.step import StepIdentity
from serde_msgspec import StructBaseCompat, decode_json_lines, validation_error_payload

_LOGGER = logging.getLogger(__name__)


class HistoricalRecord(StructBaseCompat, frozen=True):
    """Input and output byte counts of one past run of a step."""

    mapper_bytes: NonNegativeInt
    reducer_bytes: NonNegativeInt
    step_key: str | None = None
    submitted_at: datetime | None = None


@runtime_checkable
class HistoryLookup(Protocol):
    """Port for reading past run statistics."""

    def fetch_most_recent(
        self,
        identity: StepIdentity,
        limit: int = 1,
    ) -> Sequence[HistoricalRecord]:
        """Return up to ``limit`` records for ``identity``, most recent first."""
        ...


@dataclass
class InMemoryHistory:
    """Process-local history store, newest record appended last."""

    records: dict[str, list[HistoricalRecord]] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add(self, identity: StepIdentity, record: HistoricalRecord) -> None:
        """Append ``record`` as the most recent run of ``identity``."""
        with self._lock:
            self.records.setdefault(identity.key, []).append(record)

    def fetch_most_recent(
        self,
        identity: StepIdentity,
        limit: int = 1,
    ) -> tuple[HistoricalRecord, ...]:
        """Return up to ``limit`` records for ``identity``, most recent first.

        Returns
        -------
        tuple[HistoricalRecord, ...]
            Matching records; empty when none are known.
        """
        if limit <= 0:
            return ()
        with self._lock:
            bucket = list(self.records.get(identity.key, ()))
        return tuple(reversed(bucket[-limit:]))


@dataclass(frozen=True)
class JsonLinesHistory:
    """Read-only history backed by a JSON Lines file.

    Each line is one ``HistoricalRecord`` carrying ``step_key``. Records are
    ordered by ``submitted_at`` when present; otherwise later lines are newer.
    """

    path: PathLike

    def fetch_most_recent(
        self,
        identity: StepIdentity,
        limit: int = 1,
    ) -> tuple[HistoricalRecord, ...]:
        """Return up to ``limit`` records for ``identity``, most recent first.

        Returns
        -------
        tuple[HistoricalRecord, ...]
            Matching records; empty when none are known.

        Raises
        ------
        HistoryLookupError
            Raised when the file cannot be decoded.
        """
        if limit <= 0:
            return ()
        records = self._load()
        key = identity.key
        matching = [
            (index, record) for index, record in enumerate(records) if record.step_key == key
        ]
        matching.sort(key=_recency_key, reverse=True)
        _LOGGER.debug("History %s has %d record(s) for %s", self.path, len(matching), key)
        return tuple(record for _, record in matching[:limit])

    def _load(self) -> list[HistoricalRecord]:
        payload = Path(self.path).read_bytes()
        try:
            return decode_json_lines(payload, target_type=HistoricalRecord)
        except msgspec.ValidationError as exc:
            details = validation_error_payload(exc)
            msg = f"Invalid history record in {self.path}: {details}"
            raise HistoryLookupError(msg) from exc
        except msgspec.DecodeError as exc:
            msg = f"Malformed history file {self.path}: {exc}"
            raise HistoryLookupError(msg) from exc


def _recency_key(item: tuple[int, HistoricalRecord]) -> tuple[float, int]:
    index, record = item
    if record.submitted_at is None:
        return (-math.inf, index)
    return (record.submitted_at.timestamp(), index)


__all__ = [
    "HistoricalRecord",
    "HistoryLookup",
    "InMemoryHistory",
    "JsonLinesHistory",
]
