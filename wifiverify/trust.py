"""Decide whether the largest class is trustworthy enough to report."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from wifiverify.fix import Fix

ONE_DAY_MS = 24 * 60 * 60 * 1000


class Branch(Enum):
    VERIFIED_SINGLETON = "verified-singleton"
    UNVERIFIED_SINGLETON = "unverified-singleton"
    DUAL_VERIFIED = "dual-verified"
    DUAL_UNVERIFIED = "dual-unverified"
    MULTI = "multi"


@dataclass(frozen=True)
class Decision:
    branch: Branch
    combine: bool
    verify: bool

    @property
    def has_result(self) -> bool:
        return self.branch not in (Branch.UNVERIFIED_SINGLETON, Branch.DUAL_UNVERIFIED)


class TrustPolicy:
    """Size-tiered trust rules.

    A single fix is only reported if it was verified within the trust window.
    A pair is combined when at least one member is verified, and then both are
    re-verified. Three or more compatible fixes corroborate each other and are
    always combined and verified.
    """

    def __init__(self, trust_window_ms: int = ONE_DAY_MS) -> None:
        self.trust_window_ms = int(trust_window_ms)

    def is_verified(self, fix: Fix, now_ms: int) -> bool:
        if fix.verified_at is None:
            return False
        return fix.verified_at > now_ms - self.trust_window_ms

    def decide(self, largest_class: Sequence[Fix], now_ms: int) -> Decision:
        size = len(largest_class)
        if size == 0:
            raise ValueError("cannot decide on an empty class")
        if size == 1:
            if self.is_verified(largest_class[0], now_ms):
                return Decision(Branch.VERIFIED_SINGLETON, combine=False, verify=False)
            return Decision(Branch.UNVERIFIED_SINGLETON, combine=False, verify=False)
        if size == 2:
            if any(self.is_verified(fix, now_ms) for fix in largest_class):
                return Decision(Branch.DUAL_VERIFIED, combine=True, verify=True)
            return Decision(Branch.DUAL_UNVERIFIED, combine=False, verify=False)
        return Decision(Branch.MULTI, combine=True, verify=True)


def stamp(fixes: Sequence[Fix], now_ms: int) -> tuple[Fix, ...]:
    """Copies of fixes marked verified at now_ms."""
    return tuple(fix.with_verified_at(now_ms) for fix in fixes)
