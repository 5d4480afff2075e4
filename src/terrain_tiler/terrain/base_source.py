"""
Detection of which part of a packed u16 terrain value holds the base id.

Map dumps disagree on whether the base terrain id sits in the low or high
byte (or only a nibble of it). The detector samples cells, resolves each
candidate's base ids to kinds and keeps the candidate that recognizes the
most kinds without collapsing onto a single value.
"""

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from .kinds import KindTables

logger = logging.getLogger(__name__)

MIN_SAMPLES = 200
MAX_SAMPLES = 800
DEFAULT_SEED = 0


class BaseSource(str, Enum):
    LO = "lo"
    HI = "hi"
    LO_NIBBLE = "lo_nibble"
    HI_NIBBLE = "hi_nibble"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: object, default: "BaseSource | None" = None) -> "BaseSource | None":
        try:
            return cls(str(value))
        except ValueError:
            return default


def extract_base(value: int, source: BaseSource) -> int:
    """Base id field of a packed terrain value."""
    if source is BaseSource.HI:
        return (value >> 8) & 0xFF
    if source is BaseSource.LO_NIBBLE:
        return value & 0x0F
    if source is BaseSource.HI_NIBBLE:
        return (value >> 8) & 0x0F
    return value & 0xFF


def embedded_special(value: int, source: BaseSource) -> int:
    """The byte not used by the base field: low byte for ``hi*`` sources, else high."""
    if source.value.startswith("hi"):
        return value & 0xFF
    return (value >> 8) & 0xFF


@dataclass(frozen=True)
class CandidateScore:
    """Sampling statistics of one base-source candidate."""
    source: BaseSource
    score: float
    known_count: int
    unknown_count: int
    known_ratio: float
    distinct_kinds: int
    unique_values: int
    top_value: int | None
    top_ratio: float


@dataclass(frozen=True)
class BaseSourceReport:
    """Outcome of a detection run, kept for diagnostics."""
    source: BaseSource = BaseSource.LO
    sample_count: int = 0
    candidates: tuple[CandidateScore, ...] = field(default_factory=tuple)

    def summary(self) -> str:
        parts = [f"{c.source.value}={c.score:.2f}" for c in self.candidates]
        return f"source={self.source.value} samples={self.sample_count} " + " ".join(parts)


def sample_count_for(total: int, min_samples: int = MIN_SAMPLES, max_samples: int = MAX_SAMPLES) -> int:
    return max(min_samples, min(max_samples, total))


def score_candidate(
    source: BaseSource, samples: Sequence[int], tables: KindTables
) -> CandidateScore:
    """Score one candidate over already drawn sample values.

    score = known_ratio * 100 + distinct_kinds * 8 - top_ratio * 30
    """
    base_counts: dict[int, int] = {}
    kind_counts: dict[str, int] = {}
    known = 0
    for value in samples:
        base = extract_base(value, source)
        base_counts[base] = base_counts.get(base, 0) + 1
        kind = tables.kind_for_base_id(base, allow_water=True)
        if kind is not None:
            known += 1
            kind_counts[kind.value] = kind_counts.get(kind.value, 0) + 1

    total = max(1, len(samples))
    known_ratio = known / total
    top_value: int | None = None
    top_count = 0
    for base, count in base_counts.items():
        if count > top_count:
            top_value, top_count = base, count
    top_ratio = round(top_count / total, 3) if samples else 0.0
    score = known_ratio * 100 + len(kind_counts) * 8 - top_ratio * 30

    return CandidateScore(
        source=source,
        score=round(score, 2),
        known_count=known,
        unknown_count=len(samples) - known,
        known_ratio=round(known_ratio, 3),
        distinct_kinds=len(kind_counts),
        unique_values=len(base_counts),
        top_value=top_value,
        top_ratio=top_ratio,
    )


def detect_base_source(
    values: Sequence[int],
    tables: KindTables,
    rng: random.Random | None = None,
    min_samples: int = MIN_SAMPLES,
    max_samples: int = MAX_SAMPLES,
) -> BaseSourceReport:
    """Pick the base source for a terrain layer.

    Args:
        values: Raw u16 terrain values of the snapshot
        tables: Kind tables used to recognize base ids
        rng: Random source for sampling (seeded with ``DEFAULT_SEED`` if None)
        min_samples: Lower bound on samples drawn
        max_samples: Upper bound on samples drawn

    Returns:
        BaseSourceReport; ``lo`` when ``values`` is empty. Ties keep the
        candidate order lo, hi, lo_nibble, hi_nibble.
    """
    if not values:
        return BaseSourceReport()

    rng = rng or random.Random(DEFAULT_SEED)
    count = sample_count_for(len(values), min_samples, max_samples)
    samples = [values[rng.randrange(len(values))] or 0 for _ in range(count)]

    scores = [score_candidate(source, samples, tables) for source in BaseSource]
    # sorted() is stable, so equal scores stay in candidate order
    ranked = tuple(sorted(scores, key=lambda c: c.score, reverse=True))
    report = BaseSourceReport(source=ranked[0].source, sample_count=count, candidates=ranked)
    logger.debug(f"Terrain base source detected: {report.summary()}")
    return report
