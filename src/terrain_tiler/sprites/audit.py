"""
Coverage audit for image-keyed sprite resolution.

Counts which shore masks had to fall back (or found nothing at all) and
which canonical rotations were used, so asset gaps show up in the log.
State lives on a :class:`CoverageAudit` owned by the service and is reset
whenever the asset index is reloaded.
"""

import logging
import threading
from collections import Counter, deque
from typing import Any

from ..autotile.masks import normalize_mask_string
from .models import AuditRecord

ROTATIONS = (0, 90, 180, 270)


class CoverageAudit:
    """Thread-safe counters for fallback and rotation statistics."""

    def __init__(
        self,
        enabled: bool = False,
        missing_log_every: int = 50,
        rotation_log_every: int = 100,
        top_limit: int = 20,
        sample_limit: int = 12,
        record_limit: int = 500,
    ):
        """Initialize the audit.

        Args:
            enabled: Log missing-mask summaries (coast audit mode)
            missing_log_every: Log a summary every N recorded misses per plane/kind
            rotation_log_every: Log rotation counts every N recorded rotations
            top_limit: Number of masks in a missing summary
            sample_limit: Number of detailed mask samples to log per reload
            record_limit: Number of recent audit records kept
        """
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.enabled = enabled
        self.missing_log_every = missing_log_every
        self.rotation_log_every = rotation_log_every
        self.top_limit = top_limit
        self.sample_limit = sample_limit
        self._lock = threading.Lock()
        self._missing: dict[str, Counter[str]] = {}
        self._rotations: Counter[int] = Counter({r: 0 for r in ROTATIONS})
        self._records: deque[AuditRecord] = deque(maxlen=record_limit)
        self._sample_count = 0

    def reset(self) -> None:
        with self._lock:
            self._missing.clear()
            self._rotations = Counter({r: 0 for r in ROTATIONS})
            self._records.clear()
            self._sample_count = 0

    def record_missing(self, plane: str, kind: str, mask: str) -> None:
        """Count a mask that did not resolve exactly."""
        if not plane or not kind:
            return
        normalized = normalize_mask_string(mask)
        key = f"{plane}|{kind}"
        with self._lock:
            stats = self._missing.setdefault(key, Counter())
            stats[normalized] += 1
            total = sum(stats.values())
            top = stats.most_common(self.top_limit)
        if not self.enabled or not self.missing_log_every:
            return
        if total % self.missing_log_every != 0:
            return
        summary = ", ".join(f"{m}={c}" for m, c in top)
        self.logger.info(f"Shore missing masks ({plane}/{kind}): {summary}")

    def record_rotation(self, kind: str, rotation: int) -> None:
        key = rotation if rotation in ROTATIONS else 0
        with self._lock:
            self._rotations[key] += 1
            total = sum(self._rotations.values())
            snapshot = dict(self._rotations)
        if self.rotation_log_every and total % self.rotation_log_every == 0:
            self.logger.info(f"Mask rotations ({kind}): {snapshot}")

    def record(self, record: AuditRecord) -> None:
        with self._lock:
            self._records.append(record)

    def take_sample(self) -> bool:
        """Return True while detailed mask samples may still be logged."""
        with self._lock:
            if self._sample_count >= self.sample_limit:
                return False
            self._sample_count += 1
            return True

    def top_missing(self, plane: str, kind: str, limit: int | None = None) -> list[tuple[str, int]]:
        with self._lock:
            stats = self._missing.get(f"{plane}|{kind}")
            if not stats:
                return []
            return stats.most_common(limit or self.top_limit)

    def missing_total(self, plane: str, kind: str) -> int:
        with self._lock:
            stats = self._missing.get(f"{plane}|{kind}")
            return sum(stats.values()) if stats else 0

    @property
    def rotation_stats(self) -> dict[int, int]:
        with self._lock:
            return {r: self._rotations[r] for r in ROTATIONS}

    @property
    def records(self) -> list[AuditRecord]:
        with self._lock:
            return list(self._records)

    def summary(self) -> dict[str, Any]:
        """Snapshot of all counters, suitable for JSON output."""
        with self._lock:
            return {
                "rotations": {str(r): self._rotations[r] for r in ROTATIONS},
                "missing": {
                    key: [{"mask": m, "count": c} for m, c in stats.most_common(self.top_limit)]
                    for key, stats in self._missing.items()
                },
                "records": len(self._records),
            }
