"""
Batch preparation: same-batch collision detection, policy handling and the
name resolution pass that runs before any upload is dispatched.
"""

from collections import defaultdict
from typing import Awaitable, Callable, Iterable

from ..logger import logger
from .naming import resolve_name
from .pending import MISSING_PAYLOAD, PendingQueue
from .types import (
    BatchResult,
    CollisionPolicy,
    CollisionReport,
    DuplicateGroup,
    PendingItem,
)

# Asked once per batch when original names collide; never answered automatically
PolicyPrompt = Callable[[CollisionReport], Awaitable[CollisionPolicy]]


def find_duplicates(items: Iterable[PendingItem]) -> CollisionReport:
    """Group items whose original names are equal."""
    groups: dict[str, list[str]] = defaultdict(list)
    for item in items:
        groups[item.source_name].append(item.id)

    return CollisionReport(
        duplicates=[
            DuplicateGroup(source_name=name, item_ids=ids)
            for name, ids in groups.items()
            if len(ids) > 1
        ]
    )


def keep_first(items: list[PendingItem]) -> tuple[list[PendingItem], list[PendingItem]]:
    """Split items into the first of each original name and the rest."""
    seen: set[str] = set()
    kept, dropped = [], []
    for item in items:
        if item.source_name in seen:
            dropped.append(item)
        else:
            seen.add(item.source_name)
            kept.append(item)
    return kept, dropped


def resolve_batch(items: list[PendingItem], taken: set[str]) -> list[PendingItem]:
    """Assign ``resolved_name`` to every item in order.

    ``taken`` is updated in place with every name assigned.
    """
    for item in items:
        item.resolved_name = resolve_name(item.source_name, taken)
        taken.add(item.resolved_name)
    return items


class BatchProcessor:
    def __init__(self, pending: PendingQueue):
        self.pending = pending

    def check(self) -> CollisionReport:
        """Report same-batch collisions in the queued items without changing them."""
        return find_duplicates(
            item for item in self.pending.queued() if item.payload is not None
        )

    async def prepare(
        self, taken_names: Iterable[str], ask_policy: PolicyPrompt
    ) -> BatchResult:
        """Run one resolution pass over the queued items.

        Args:
            taken_names: Names already in use (stored files and in-flight uploads)
            ask_policy: Awaited when original names collide within the batch

        Returns:
            BatchResult with the resolved items ready for dispatch. When the
            policy is ``abort`` nothing in the queue is changed.
        """
        batch = self.pending.queued()
        candidates = [item for item in batch if item.payload is not None]
        missing = [item for item in batch if item.payload is None]

        policy = None
        report = find_duplicates(candidates)
        if report.has_collisions:
            policy = await ask_policy(report)
            logger.info(
                f"Batch has {len(report.duplicates)} duplicated name(s), policy={policy.value}"
            )
            if policy == CollisionPolicy.ABORT:
                return BatchResult(policy=policy)

        for item in missing:
            self.pending.reject(item.id, MISSING_PAYLOAD)
            logger.warning(f"Pending item '{item.source_name}' has no file data")

        dropped: list[PendingItem] = []
        if policy == CollisionPolicy.KEEP_FIRST_ONLY:
            candidates, dropped = keep_first(candidates)
            for item in dropped:
                self.pending.remove(item.id)

        resolved = resolve_batch(candidates, set(taken_names))
        return BatchResult(
            policy=policy,
            resolved=resolved,
            dropped=[item.id for item in dropped],
            rejected=[item.id for item in missing],
        )
