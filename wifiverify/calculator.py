"""Cluster, trust-check and combine wifi fixes into one location estimate."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from wifiverify.clustering import FixClass, class_sizes, cluster
from wifiverify.combine import MemberWeight, combine
from wifiverify.config import VerifierConfig
from wifiverify.fix import Fix
from wifiverify.store import LocationStore, StoreError, store_session
from wifiverify.trust import Branch, Decision, TrustPolicy, stamp

log = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Estimate:
    fix: Fix | None
    classes: tuple[FixClass, ...] = ()
    chosen: FixClass | None = None
    decision: Decision | None = None
    weights: tuple[MemberWeight, ...] = ()
    verified: tuple[Fix, ...] = ()
    verify_error: StoreError | None = None

    @property
    def branch(self) -> Branch | None:
        return self.decision.branch if self.decision is not None else None


class VerifyingCalculator:
    """Turns a set of per-access-point fixes into one trusted fix or None."""

    def __init__(
        self,
        store: LocationStore,
        config: VerifierConfig | None = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.store = store
        self.config = config or VerifierConfig()
        self.policy = TrustPolicy(trust_window_ms=self.config.trust_window_ms)
        self._clock = clock

    def calculate(self, fixes: Iterable[Fix]) -> Fix | None:
        return self.estimate(fixes).fix

    def estimate(self, fixes: Iterable[Fix]) -> Estimate:
        now = int(self._clock())
        classes = tuple(cluster(fixes, radius=self.config.max_radius))
        log.debug("built classes of size: %s", " ".join(str(n) for n in class_sizes(classes)))
        if not classes:
            return Estimate(fix=None)

        chosen = classes[0]
        decision = self.policy.decide(chosen, now)
        log.debug("largest class is %s (%d fixes)", decision.branch.value, len(chosen))

        if decision.branch is Branch.VERIFIED_SINGLETON:
            return Estimate(fix=chosen[0], classes=classes, chosen=chosen, decision=decision)
        if not decision.has_result:
            return Estimate(fix=None, classes=classes, chosen=chosen, decision=decision)

        members = chosen
        verified: tuple[Fix, ...] = ()
        verify_error: StoreError | None = None
        if decision.verify:
            if decision.branch is Branch.DUAL_VERIFIED:
                unverified = [f.source_id for f in chosen if not self.policy.is_verified(f, now)]
                if unverified:
                    log.debug("verifying %s by co-occurrence only", ", ".join(unverified))
            members = verified = stamp(chosen, now)
            verify_error = self._verify(verified)

        combination = combine(
            members,
            accuracy_weight=self.config.accuracy_weight,
            min_signal_level=self.config.min_signal_level,
        )
        return Estimate(
            fix=combination.fix,
            classes=classes,
            chosen=chosen,
            decision=decision,
            weights=combination.weights,
            verified=verified,
            verify_error=verify_error,
        )

    def _verify(self, fixes: tuple[Fix, ...]) -> StoreError | None:
        try:
            with store_session(self.store) as editor:
                for fix in fixes:
                    editor.put(fix)
        except StoreError as e:
            log.warning("failed to store verification of %d fixes: %s", len(fixes), e)
            return e
        except Exception as e:
            # Stores backed by other libraries raise their own error types.
            log.warning(
                "failed to store verification of %d fixes: %s", len(fixes), e, exc_info=True,
            )
            error = StoreError(str(e))
            error.__cause__ = e
            return error
        return None
