"""Unit tests for quote reconciliation"""

import pytest

from quotesync.core.models import MergePolicy, Quote, QuoteSide
from quotesync.reconciliation.reconciler import QuoteReconciler, reconcile


def make_quote(text: str, category: str, updated_at: int) -> Quote:
    return Quote(text=text, category=category, updated_at=updated_at)


@pytest.fixture
def reconciler() -> QuoteReconciler:
    return QuoteReconciler()


class TestDisjointCollections:
    """Inputs that share no identity key"""

    @pytest.mark.parametrize("policy", list(MergePolicy))
    def test_union_without_conflicts(self, reconciler: QuoteReconciler, policy: MergePolicy) -> None:
        """Disjoint inputs merge to local + remote with nothing reported"""
        local = [Quote.create("A", "X")]
        remote = [Quote.create("B", "Y")]

        result = reconciler.reconcile(local, remote, policy)

        assert result.merged == local + remote
        assert result.conflicts == []
        assert result.policy == policy

    def test_empty_inputs(self, reconciler: QuoteReconciler) -> None:
        result = reconciler.reconcile([], [])

        assert result.merged == []
        assert result.conflicts == []

    def test_key_is_a_pair_not_a_joined_string(self, reconciler: QuoteReconciler) -> None:
        """("ab", "c") and ("a", "bc") are different quotes"""
        local = [make_quote("ab", "c", 1)]
        remote = [make_quote("a", "bc", 1)]

        result = reconciler.reconcile(local, remote)

        assert len(result.merged) == 2
        assert result.conflicts == []

    def test_key_is_case_sensitive(self, reconciler: QuoteReconciler) -> None:
        local = [make_quote("Carpe diem", "Life", 1)]
        remote = [make_quote("carpe diem", "Life", 2)]

        result = reconciler.reconcile(local, remote)

        assert len(result.merged) == 2


class TestLatestTimestampPolicy:
    """Greater updatedAt wins, ties go to remote"""

    def test_newer_remote_wins(self, reconciler: QuoteReconciler) -> None:
        """local A/X@1 vs remote A/X@2 keeps the remote copy and reports it"""
        local = [make_quote("A", "X", 1)]
        remote = [make_quote("A", "X", 2)]

        result = reconciler.reconcile(local, remote, MergePolicy.LATEST_TIMESTAMP)

        assert result.merged == [make_quote("A", "X", 2)]
        assert len(result.conflicts) == 1
        conflict = result.conflicts[0]
        assert conflict.local == local[0]
        assert conflict.remote == remote[0]
        assert conflict.winner == QuoteSide.REMOTE
        assert conflict.kept == remote[0]
        assert conflict.discarded == local[0]

    def test_newer_local_wins(self, reconciler: QuoteReconciler) -> None:
        local = [make_quote("A", "X", 10)]
        remote = [make_quote("A", "X", 3)]

        result = reconciler.reconcile(local, remote, MergePolicy.LATEST_TIMESTAMP)

        assert result.merged == local
        assert result.conflicts[0].winner == QuoteSide.LOCAL
        assert result.conflicts[0].discarded == remote[0]

    def test_equal_timestamps_are_not_a_conflict(self, reconciler: QuoteReconciler) -> None:
        """Identical values on both sides resolve to remote silently"""
        local = [make_quote("A", "X", 5)]
        remote = [make_quote("A", "X", 5)]

        result = reconciler.reconcile(local, remote, MergePolicy.LATEST_TIMESTAMP)

        assert result.merged == remote
        assert result.conflicts == []

    def test_duplicates_within_one_side_keep_newest(self, reconciler: QuoteReconciler) -> None:
        local = [make_quote("A", "X", 1), make_quote("A", "X", 3), make_quote("A", "X", 2)]

        result = reconciler.reconcile(local, [], MergePolicy.LATEST_TIMESTAMP)

        assert result.merged == [make_quote("A", "X", 3)]
        assert result.conflicts == []

    def test_conflict_compares_best_of_each_side(self, reconciler: QuoteReconciler) -> None:
        """A stale local duplicate does not produce a conflict"""
        local = [make_quote("A", "X", 1), make_quote("A", "X", 3)]
        remote = [make_quote("A", "X", 3)]

        result = reconciler.reconcile(local, remote, MergePolicy.LATEST_TIMESTAMP)

        assert result.merged == [make_quote("A", "X", 3)]
        assert result.conflicts == []


class TestRemoteWinsPolicy:
    """Remote overrides local regardless of timestamps"""

    def test_remote_overrides_newer_local(self, reconciler: QuoteReconciler) -> None:
        local = [make_quote("A", "X", 100)]
        remote = [make_quote("A", "X", 1)]

        result = reconciler.reconcile(local, remote, MergePolicy.REMOTE_WINS)

        assert result.merged == remote
        assert len(result.conflicts) == 1
        assert result.conflicts[0].winner == QuoteSide.REMOTE

    def test_local_only_keys_are_kept(self, reconciler: QuoteReconciler) -> None:
        local = [make_quote("A", "X", 100), make_quote("Only local", "L", 7)]
        remote = [make_quote("A", "X", 1)]

        result = reconciler.reconcile(local, remote, MergePolicy.REMOTE_WINS)

        assert make_quote("Only local", "L", 7) in result.merged
        assert len(result.merged) == 2

    def test_last_duplicate_wins_within_a_side(self, reconciler: QuoteReconciler) -> None:
        remote = [make_quote("A", "X", 9), make_quote("A", "X", 2)]

        result = reconciler.reconcile([], remote, MergePolicy.REMOTE_WINS)

        assert result.merged == [make_quote("A", "X", 2)]


class TestMergeGuarantees:
    """Ordering, deduplication and idempotence"""

    def test_first_seen_order_is_preserved(self, reconciler: QuoteReconciler) -> None:
        local = [make_quote("B", "X", 1), make_quote("A", "X", 1)]
        remote = [make_quote("C", "X", 1), make_quote("A", "X", 2)]

        result = reconciler.reconcile(local, remote)

        assert [q.text for q in result.merged] == ["B", "A", "C"]

    @pytest.mark.parametrize("policy", list(MergePolicy))
    def test_one_entry_per_key(self, reconciler: QuoteReconciler, policy: MergePolicy) -> None:
        local = [make_quote("A", "X", 1), make_quote("A", "X", 4), make_quote("B", "Y", 1)]
        remote = [make_quote("A", "X", 2), make_quote("B", "Y", 1), make_quote("B", "Y", 8)]

        result = reconciler.reconcile(local, remote, policy)

        keys = [q.key for q in result.merged]
        assert len(keys) == len(set(keys)) == 2

    @pytest.mark.parametrize("policy", list(MergePolicy))
    def test_remerging_against_nothing_is_a_noop(
        self, reconciler: QuoteReconciler, policy: MergePolicy
    ) -> None:
        local = [make_quote("A", "X", 1), make_quote("B", "Y", 5), make_quote("A", "X", 3)]
        remote = [make_quote("A", "X", 2), make_quote("C", "Z", 1)]

        merged = reconciler.reconcile(local, remote, policy).merged
        again = reconciler.reconcile(merged, [], policy)

        assert again.merged == merged
        assert again.conflicts == []

    def test_inputs_are_not_modified(self, reconciler: QuoteReconciler) -> None:
        local = [make_quote("A", "X", 1)]
        remote = [make_quote("A", "X", 2)]

        reconciler.reconcile(local, remote)

        assert local == [make_quote("A", "X", 1)]
        assert remote == [make_quote("A", "X", 2)]


class TestReconcilerBookkeeping:
    """Defaults, overrides and statistics"""

    def test_default_policy_is_used(self) -> None:
        reconciler = QuoteReconciler(MergePolicy.REMOTE_WINS)

        result = reconciler.reconcile([make_quote("A", "X", 9)], [make_quote("A", "X", 1)])

        assert result.policy == MergePolicy.REMOTE_WINS
        assert result.merged == [make_quote("A", "X", 1)]

    def test_stats_count_runs_and_conflicts(self, reconciler: QuoteReconciler) -> None:
        reconciler.reconcile([make_quote("A", "X", 1)], [make_quote("A", "X", 2)])
        reconciler.reconcile([], [])

        assert reconciler.get_stats() == {"reconciliations": 2, "conflicts": 1}

    def test_module_level_reconcile(self) -> None:
        result = reconcile(
            [make_quote("A", "X", 1)],
            [make_quote("A", "X", 2)],
            MergePolicy.LATEST_TIMESTAMP,
        )

        assert result.merged == [make_quote("A", "X", 2)]
        assert len(result.conflicts) == 1
