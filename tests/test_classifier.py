"""Tests for the hysteresis classifier."""

from __future__ import annotations

from typing import Iterator, List

import pytest

from health_sentinel.monitor.classifier import HealthClassifier, TargetState
from health_sentinel.monitor.types import ProbeResult


def ok(target: str) -> ProbeResult:
    return ProbeResult(target)


def fail(target: str) -> ProbeResult:
    return ProbeResult(target, RuntimeError("random error"))


class TestConstruction:
    def test_rejects_zero_thresholds(self) -> None:
        with pytest.raises(ValueError):
            HealthClassifier(0, 1)
        with pytest.raises(ValueError):
            HealthClassifier(1, 0)

    def test_starts_empty(self) -> None:
        c = HealthClassifier(1, 1)
        assert c.healthy == frozenset()
        assert c.unhealthy == frozenset()
        assert c.streaks("x") == (0, 0)
        assert c.state_of("x") is TargetState.UNCLASSIFIED


class TestThresholdOne:
    def test_never_healthy_target(self) -> None:
        c = HealthClassifier(1, 1)

        out = c.update([fail("master-0")])
        assert c.unhealthy == {"master-0"}
        assert list(out.became_unhealthy) == ["master-0"]

        out = c.update([fail("master-0")])
        assert c.unhealthy == {"master-0"}
        assert out.transitions == 0

    def test_healthy_targets_rounds(self) -> None:
        c = HealthClassifier(1, 1)

        c.update([])
        assert not c.healthy and not c.unhealthy

        c.update([ok("master-0"), ok("master-1"), ok("master-2")])
        assert c.healthy == {"master-0", "master-1", "master-2"}

        c.update([ok("master-0"), fail("master-1"), ok("master-2")])
        assert c.healthy == {"master-0", "master-2"}
        assert c.unhealthy == {"master-1"}

        c.update([ok("master-0"), fail("master-1"), fail("master-2")])
        assert c.healthy == {"master-0"}
        assert c.unhealthy == {"master-1", "master-2"}

        c.update([ok("master-0"), ok("master-1"), ok("master-2")])
        assert c.healthy == {"master-0", "master-1", "master-2"}
        assert c.unhealthy == frozenset()


class TestHysteresis:
    """Unhealthy threshold 2, healthy threshold 3."""

    @pytest.fixture
    def classifier(self) -> HealthClassifier:
        return HealthClassifier(unhealthy_threshold=2, healthy_threshold=3)

    def test_health_probe_rounds(self, classifier: HealthClassifier) -> None:
        all_ok = [ok("master-0"), ok("master-1"), ok("master-2")]
        one_bad = [ok("master-0"), fail("master-1"), ok("master-2")]
        everyone = {"master-0", "master-1", "master-2"}

        rounds = [
            (all_ok, set(), set()),
            (all_ok, set(), set()),
            (all_ok, everyone, set()),
            (all_ok, everyone, set()),
            (one_bad, everyone, set()),
            (one_bad, {"master-0", "master-2"}, {"master-1"}),
            (all_ok, {"master-0", "master-2"}, {"master-1"}),
            (all_ok, {"master-0", "master-2"}, {"master-1"}),
            (all_ok, everyone, set()),
        ]
        for i, (batch, healthy, unhealthy) in enumerate(rounds, start=1):
            classifier.update(batch)
            assert classifier.healthy == healthy, f"round {i}"
            assert classifier.unhealthy == unhealthy, f"round {i}"

    def test_single_failure_stays_unclassified(self, classifier: HealthClassifier) -> None:
        classifier.update([fail("a")])
        assert classifier.state_of("a") is TargetState.UNCLASSIFIED
        classifier.update([fail("a")])
        assert classifier.state_of("a") is TargetState.UNHEALTHY

    def test_failure_streak_is_capped(self, classifier: HealthClassifier) -> None:
        for _ in range(5):
            classifier.update([fail("a")])
        assert classifier.streaks("a") == (0, 2)

    def test_success_streak_is_capped(self, classifier: HealthClassifier) -> None:
        for _ in range(7):
            classifier.update([ok("a")])
        assert classifier.streaks("a") == (3, 0)

    def test_opposite_outcome_resets_other_streak(self, classifier: HealthClassifier) -> None:
        classifier.update([ok("a")])
        classifier.update([ok("a")])
        assert classifier.streaks("a") == (2, 0)
        classifier.update([fail("a")])
        assert classifier.streaks("a") == (0, 1)
        classifier.update([ok("a")])
        assert classifier.streaks("a") == (1, 0)

    def test_interrupted_run_does_not_classify(self, classifier: HealthClassifier) -> None:
        for batch in ([ok("a")], [ok("a")], [fail("a")], [ok("a")], [ok("a")]):
            classifier.update(batch)
        assert classifier.state_of("a") is TargetState.UNCLASSIFIED
        classifier.update([ok("a")])
        assert classifier.state_of("a") is TargetState.HEALTHY

    def test_unhealthy_needs_full_healthy_run(self, classifier: HealthClassifier) -> None:
        classifier.update([fail("a")])
        classifier.update([fail("a")])
        classifier.update([ok("a")])
        classifier.update([ok("a")])
        assert classifier.state_of("a") is TargetState.UNHEALTHY
        classifier.update([ok("a")])
        assert classifier.state_of("a") is TargetState.HEALTHY
        assert classifier.unhealthy == frozenset()

    def test_transition_reported_once(self, classifier: HealthClassifier) -> None:
        outcomes = [classifier.update([ok("a")]) for _ in range(5)]
        assert [o.became_healthy for o in outcomes] == [[], [], ["a"], [], []]


class TestInvariants:
    def test_sets_are_disjoint(self) -> None:
        c = HealthClassifier(1, 2)
        pattern = [True, False, True, True, False, False, True, True, True, False]
        for i, good in enumerate(pattern):
            c.update([ok("x") if good else fail("x"), fail("y") if i % 3 else ok("y")])
            assert not (c.healthy & c.unhealthy)

    def test_order_within_round_does_not_matter(self) -> None:
        batch = [ok("a"), fail("b"), ok("c"), fail("d")]
        forward = HealthClassifier(1, 1)
        backward = HealthClassifier(1, 1)
        forward.update(batch)
        backward.update(list(reversed(batch)))
        assert forward.healthy == backward.healthy
        assert forward.unhealthy == backward.unhealthy

    def test_failed_batch_leaves_state_untouched(self) -> None:
        c = HealthClassifier(1, 1)
        c.update([ok("a"), fail("b")])

        def broken() -> Iterator[ProbeResult]:
            yield fail("a")
            yield ok("b")
            raise RuntimeError("bookkeeping failure")

        with pytest.raises(RuntimeError):
            c.update(broken())
        assert c.healthy == {"a"}
        assert c.unhealthy == {"b"}
        assert c.streaks("a") == (1, 0)
        assert c.streaks("b") == (0, 1)


class TestEvaluateCommit:
    def test_evaluate_does_not_change_state(self) -> None:
        c = HealthClassifier(2, 2)
        c.update([ok("a")])
        c.update([ok("a")])

        first = c.evaluate([fail("a")])
        second = c.evaluate([fail("a")])
        assert first.failure_streaks == second.failure_streaks == {"a": 1}
        assert second.outcome.transitions == 0
        assert c.streaks("a") == (2, 0)
        assert c.healthy == {"a"}

    def test_commit_applies_evaluated_round(self) -> None:
        c = HealthClassifier(1, 1)
        c.update([ok("a")])

        pending = c.evaluate([fail("a")])
        assert pending.unhealthy == {"a"}
        assert list(pending.outcome.became_unhealthy) == ["a"]
        assert c.healthy == {"a"}

        c.commit(pending)
        assert c.healthy == frozenset()
        assert c.unhealthy == {"a"}
        assert c.streaks("a") == (0, 1)

    def test_dropped_round_leaves_next_round_unaffected(self) -> None:
        c = HealthClassifier(2, 2)
        c.update([fail("a")])
        c.evaluate([fail("a")])
        out = c.update([ok("a")])
        assert out.transitions == 0
        assert c.streaks("a") == (1, 0)
        assert c.state_of("a") is TargetState.UNCLASSIFIED


class TestForget:
    def test_forget_purges_counters_and_membership(self) -> None:
        c = HealthClassifier(1, 1)
        c.update([ok("a"), fail("b"), ok("c")])
        c.forget({"a", "b"})
        assert c.healthy == {"c"}
        assert c.unhealthy == frozenset()
        assert c.streaks("a") == (0, 0)
        assert c.streaks("b") == (0, 0)

    def test_forget_unknown_target_is_noop(self) -> None:
        c = HealthClassifier(1, 1)
        c.update([ok("a")])
        removed: List[str] = ["zzz"]
        c.forget(removed)
        assert c.healthy == {"a"}
