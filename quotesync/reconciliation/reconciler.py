"""Merge logic for local and remote quote collections"""

from collections.abc import Sequence
from typing import Optional

from loguru import logger

from quotesync.core.models import (
    MergePolicy,
    Quote,
    QuoteConflict,
    QuoteSide,
    ReconciliationResult,
)


class QuoteReconciler:
    """
    Merges a local and a remote quote collection.

    Policies:
    - LATEST_TIMESTAMP: greater ``updatedAt`` wins, ties go to remote
    - REMOTE_WINS: any key present in remote overrides local

    Both inputs are scanned once, local first, into an insertion-ordered
    mapping keyed by ``(text, category)``. The output keeps the order in
    which keys were first seen. Pure: nothing is read from or written to a
    store, callers persist ``merged`` themselves.
    """

    def __init__(self, policy: MergePolicy = MergePolicy.LATEST_TIMESTAMP) -> None:
        self.policy = policy
        self.reconciliation_count = 0
        self.conflict_count = 0
        logger.info("QuoteReconciler initialized (policy={policy})", policy=policy.value)

    def reconcile(
        self,
        local: Sequence[Quote],
        remote: Sequence[Quote],
        policy: Optional[MergePolicy] = None,
    ) -> ReconciliationResult:
        """
        Merge local and remote quotes.

        Args:
            local: Quotes from the local store
            remote: Quotes from the remote source (empty when unavailable)
            policy: Overrides the reconciler's default policy for this call

        Returns:
            ReconciliationResult with the deduplicated collection and
            one conflict per key whose local and remote values differ
        """
        policy = policy or self.policy
        self.reconciliation_count += 1

        merged: dict[tuple[str, str], tuple[Quote, QuoteSide]] = {}
        best_by_side: dict[QuoteSide, dict[tuple[str, str], Quote]] = {
            QuoteSide.LOCAL: {},
            QuoteSide.REMOTE: {},
        }

        for side, quotes in ((QuoteSide.LOCAL, local), (QuoteSide.REMOTE, remote)):
            side_best = best_by_side[side]
            for quote in quotes:
                key = quote.key

                current = side_best.get(key)
                if current is None or self._replaces(policy, quote, side, current, side):
                    side_best[key] = quote

                held = merged.get(key)
                if held is None or self._replaces(policy, quote, side, *held):
                    merged[key] = (quote, side)

        conflicts = self._collect_conflicts(merged, best_by_side)
        self.conflict_count += len(conflicts)

        logger.info(
            "Reconciled {local} local + {remote} remote -> {merged} quotes, "
            "{conflicts} conflicts ({policy})",
            local=len(local),
            remote=len(remote),
            merged=len(merged),
            conflicts=len(conflicts),
            policy=policy.value,
        )

        return ReconciliationResult(
            merged=[quote for quote, _ in merged.values()],
            conflicts=conflicts,
            policy=policy,
        )

    def _replaces(
        self,
        policy: MergePolicy,
        incoming: Quote,
        incoming_side: QuoteSide,
        held: Quote,
        held_side: QuoteSide,
    ) -> bool:
        """Whether ``incoming`` takes the slot currently held by ``held``"""
        if policy == MergePolicy.REMOTE_WINS:
            # Within a side the last entry wins; remote never yields to local
            if incoming_side == held_side:
                return True
            return incoming_side == QuoteSide.REMOTE

        if incoming.updated_at != held.updated_at:
            return incoming.updated_at > held.updated_at
        # Equal timestamps: later entry on the same side, otherwise remote
        return incoming_side == held_side or incoming_side == QuoteSide.REMOTE

    def _collect_conflicts(
        self,
        merged: dict[tuple[str, str], tuple[Quote, QuoteSide]],
        best_by_side: dict[QuoteSide, dict[tuple[str, str], Quote]],
    ) -> list[QuoteConflict]:
        local_best = best_by_side[QuoteSide.LOCAL]
        remote_best = best_by_side[QuoteSide.REMOTE]
        conflicts: list[QuoteConflict] = []

        for key, (_, winner) in merged.items():
            local_quote = local_best.get(key)
            remote_quote = remote_best.get(key)
            if local_quote is None or remote_quote is None:
                continue
            # Same values on both sides is not a conflict
            if local_quote == remote_quote:
                continue

            conflicts.append(
                QuoteConflict(local=local_quote, remote=remote_quote, winner=winner)
            )
            logger.debug(
                "Conflict on {text!r} [{category}]: local@{l_ts} vs remote@{r_ts}, {winner} kept",
                text=key[0][:50],
                category=key[1],
                l_ts=local_quote.updated_at,
                r_ts=remote_quote.updated_at,
                winner=winner.value,
            )

        return conflicts

    def get_stats(self) -> dict:
        """Get reconciliation statistics"""
        return {
            "reconciliations": self.reconciliation_count,
            "conflicts": self.conflict_count,
        }


def reconcile(
    local: Sequence[Quote],
    remote: Sequence[Quote],
    policy: MergePolicy = MergePolicy.LATEST_TIMESTAMP,
) -> ReconciliationResult:
    """Merge two quote collections with a one-off reconciler"""
    return QuoteReconciler(policy).reconcile(local, remote)
