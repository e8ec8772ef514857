"""Session-scoped piece pool.

Queues filtered pieces per category and hands them out at most once,
bounding how many delivered pieces may cite the same fragment.

A PoolCoordinator belongs to exactly one session. It does no locking;
callers sharing a session must serialize enqueue/get_next themselves.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .models import Category, Piece, empty_category_map


@dataclass
class EnqueueResult:
    """Outcome of an enqueue call."""
    enqueued: int
    skipped: int
    pool_size: int


@dataclass
class PoolStats:
    """Pool statistics for status displays."""
    per_category: Dict[str, int]
    total_used_texts: int
    fragment_usage: Dict[str, int]


class PoolCoordinator:
    """Consumable per-category queue with usage tracking."""

    def __init__(self, max_pieces_per_fragment: int = 2):
        """Initialize an empty pool for a new session.

        Args:
            max_pieces_per_fragment: Delivery quota per source fragment
        """
        self.max_pieces_per_fragment = max_pieces_per_fragment
        self.used_texts = set()
        self.fragment_counts = defaultdict(int)
        # Queued pieces per fragment that can still be delivered
        self.pending_counts = defaultdict(int)
        self.queues = empty_category_map()

    def _is_eligible(self, piece: Piece, pending: int = 0) -> bool:
        if piece.normalized_text in self.used_texts:
            return False
        if piece.fragment_id:
            used = self.fragment_counts.get(piece.fragment_id, 0)
            if used + pending >= self.max_pieces_per_fragment:
                return False
        return True

    def _release_text(self, normalized_text: str):
        """Stop counting queued copies of a delivered text as pending."""
        for queue in self.queues.values():
            for piece in queue:
                if piece.fragment_id and piece.normalized_text == normalized_text:
                    self.pending_counts[piece.fragment_id] -= 1

    def enqueue(self, category: Category, pieces: Iterable[Piece]) -> EnqueueResult:
        """Add a batch of pieces to a category's queue.

        Pieces whose text was already delivered are skipped. A fragment's
        quota covers pieces delivered plus deliverable pieces still queued
        in any category, so a fresh pool accepts at most two pieces per
        fragment. Queued copies of a text that has since been delivered no
        longer count.

        Args:
            category: Target category
            pieces: Filtered pieces

        Returns:
            EnqueueResult with enqueued/skipped counts and total pool size
        """
        category = Category.parse(category)
        queue = self.queues[category]
        enqueued = 0
        skipped = 0

        for piece in pieces:
            pending = self.pending_counts.get(piece.fragment_id, 0) if piece.fragment_id else 0
            if not self._is_eligible(piece, pending):
                skipped += 1
                continue
            queue.append(piece)
            if piece.fragment_id:
                self.pending_counts[piece.fragment_id] += 1
            enqueued += 1

        return EnqueueResult(enqueued=enqueued, skipped=skipped, pool_size=self.size())

    def get_next(self, category: Category) -> Optional[Piece]:
        """Consume the next eligible piece for a category.

        Ineligible pieces are skipped but stay queued.

        Args:
            category: Category to draw from

        Returns:
            The selected piece, or None if nothing is eligible
        """
        queue = self.queues[Category.parse(category)]

        for index, piece in enumerate(queue):
            if not self._is_eligible(piece):
                continue

            del queue[index]
            self.used_texts.add(piece.normalized_text)
            if piece.fragment_id:
                self.fragment_counts[piece.fragment_id] += 1
                self.pending_counts[piece.fragment_id] -= 1
            self._release_text(piece.normalized_text)
            return piece

        return None

    def peek(self, category: Category, limit: int = None) -> List[Piece]:
        """Return up to ``limit`` queued pieces without consuming them."""
        queue = self.queues[Category.parse(category)]
        if limit is None:
            return list(queue)
        return queue[:limit]

    def remaining(self, category: Category) -> int:
        """Number of pieces queued for a category."""
        return len(self.queues[Category.parse(category)])

    def size(self) -> int:
        """Total number of queued pieces."""
        return sum(len(queue) for queue in self.queues.values())

    def clear(self):
        """Reset the pool for a fresh session."""
        self.used_texts = set()
        self.fragment_counts = defaultdict(int)
        self.pending_counts = defaultdict(int)
        self.queues = empty_category_map()

    def stats(self) -> PoolStats:
        """Return per-category queue sizes and usage counts."""
        return PoolStats(
            per_category={category.value: len(self.queues[category]) for category in Category},
            total_used_texts=len(self.used_texts),
            fragment_usage=dict(self.fragment_counts),
        )
