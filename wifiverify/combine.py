"""Signal- and accuracy-weighted centroid of a class of fixes."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from wifiverify.fix import MIN_SIGNAL_LEVEL, Fix

log = logging.getLogger(__name__)

ACCURACY_WEIGHT = 50.0


@dataclass(frozen=True)
class MemberWeight:
    fix: Fix
    normalized_signal: float
    weight: float


@dataclass(frozen=True)
class Combination:
    fix: Fix
    weights: tuple[MemberWeight, ...]


def normalized_signal(fix: Fix, min_signal_level: int = MIN_SIGNAL_LEVEL) -> float:
    return float(abs(fix.signal_level - min_signal_level))


def member_weights(
    fixes: Sequence[Fix],
    accuracy_weight: float = ACCURACY_WEIGHT,
    min_signal_level: int = MIN_SIGNAL_LEVEL,
) -> tuple[MemberWeight, ...]:
    """Relative signal strength in [0, 1] plus an accuracy term capped at 1."""
    signals = np.array(
        [normalized_signal(fix, min_signal_level) for fix in fixes],
        dtype=np.float64,
    )
    min_signal = float(signals.min())
    span = float(signals.max()) - min_signal

    weights: list[MemberWeight] = []
    for fix, signal in zip(fixes, signals):
        signal_term = (float(signal) - min_signal) / span if span > 0 else 0.0
        accuracy_term = accuracy_weight / max(fix.accuracy, accuracy_weight)
        weights.append(MemberWeight(fix=fix, normalized_signal=float(signal), weight=signal_term + accuracy_term))
    return tuple(weights)


def combine(
    fixes: Sequence[Fix],
    accuracy_weight: float = ACCURACY_WEIGHT,
    min_signal_level: int = MIN_SIGNAL_LEVEL,
) -> Combination:
    """Collapse a non-empty class into one synthesized fix."""
    if not fixes:
        raise ValueError("cannot combine an empty class")

    weighted = member_weights(fixes, accuracy_weight, min_signal_level)
    for item in weighted:
        log.debug(
            "using with weight=%f source=%s signal=%d accuracy=%f latitude=%f longitude=%f",
            item.weight,
            item.fix.source_id,
            item.fix.signal_level,
            item.fix.accuracy,
            item.fix.latitude,
            item.fix.longitude,
        )

    w = np.array([item.weight for item in weighted], dtype=np.float64)
    lat = float(np.average([fix.latitude for fix in fixes], weights=w))
    lon = float(np.average([fix.longitude for fix in fixes], weights=w))
    accuracy = float(np.average([fix.accuracy for fix in fixes], weights=w))

    altitude: float | None = None
    alt_values = [item.fix.altitude for item in weighted if item.fix.altitude is not None]
    alt_weights = [item.weight for item in weighted if item.fix.altitude is not None]
    if alt_values and sum(alt_weights) > 0:
        altitude = float(np.average(alt_values, weights=alt_weights))

    verified_times = [fix.verified_at for fix in fixes if fix.verified_at is not None]
    verified_at = max(verified_times) if verified_times else None

    combined = Fix(
        latitude=lat,
        longitude=lon,
        accuracy=max(accuracy, 0.0),
        signal_level=min_signal_level,
        altitude=altitude,
        source_id=f"combined:{len(fixes)}",
        verified_at=verified_at,
        combined_of=len(fixes),
    )
    return Combination(fix=combined, weights=weighted)
