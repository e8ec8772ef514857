"""Fragment Assignment across quadrants.

Greedy assignment of scored (fragment, category) pairs followed by a
top-up pass that gives thin categories some grounding material.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Sequence

from .models import Category, Fragment, empty_category_map
from .relevance_scorer import RelevanceScorer


logger = logging.getLogger(__name__)


class FragmentAssigner:
    """Distribute fragments across categories under multiplicity caps."""

    def __init__(
        self,
        scorer: RelevanceScorer = None,
        max_categories_per_fragment: int = 2,
        max_fragments_per_category: int = 6,
        min_fragments_per_category: int = 2
    ):
        """Initialize the assigner.

        Args:
            scorer: Relevance scorer (default keyword table if not provided)
            max_categories_per_fragment: Cross-category cap per fragment
            max_fragments_per_category: Member cap per category
            min_fragments_per_category: Target filled by the top-up pass
        """
        self.scorer = scorer or RelevanceScorer()
        self.max_categories_per_fragment = max_categories_per_fragment
        self.max_fragments_per_category = max_fragments_per_category
        self.min_fragments_per_category = min_fragments_per_category

    def scored_pairs(self, fragments: Sequence[Fragment]) -> List[tuple]:
        """Enumerate every positive-score (fragment, category) pair.

        Args:
            fragments: Input fragments

        Returns:
            List of (fragment, category, score) tuples sorted by score
            descending; ties keep fragment-major, category-minor order
        """
        pairs = []
        for fragment in fragments:
            for category in Category:
                score = self.scorer.score(fragment, category)
                if score > 0:
                    pairs.append((fragment, category, score))

        # list.sort is stable
        pairs.sort(key=lambda x: x[2], reverse=True)
        return pairs

    def assign(self, fragments: Sequence[Fragment]) -> Dict[Category, List[Fragment]]:
        """Assign fragments to categories.

        Args:
            fragments: Input fragments, in caller order

        Returns:
            Mapping of every category to its assigned fragments
        """
        assignments = empty_category_map()
        members = {category: set() for category in Category}
        counts = defaultdict(int)

        for fragment, category, score in self.scored_pairs(fragments):
            if counts[fragment.id] >= self.max_categories_per_fragment:
                continue
            if len(assignments[category]) >= self.max_fragments_per_category:
                continue
            if fragment.id in members[category]:
                continue

            assignments[category].append(fragment)
            members[category].add(fragment.id)
            counts[fragment.id] += 1

        self._top_up(fragments, assignments, members, counts)

        logger.debug(
            "Fragment assignment: "
            + ', '.join(f"{c.value}={len(assignments[c])}" for c in Category)
        )
        return assignments

    def _top_up(self, fragments, assignments, members, counts):
        """Fill categories below the minimum, ignoring score."""
        for category in Category:
            if len(assignments[category]) >= self.min_fragments_per_category:
                continue

            for fragment in fragments:
                if counts[fragment.id] >= self.max_categories_per_fragment:
                    continue
                if fragment.id in members[category]:
                    continue

                assignments[category].append(fragment)
                members[category].add(fragment.id)
                counts[fragment.id] += 1

                if len(assignments[category]) >= self.min_fragments_per_category:
                    break

    @staticmethod
    def fragment_categories(assignments: Dict[Category, List[Fragment]]) -> Dict[str, List[Category]]:
        """Invert an assignment into fragment id -> categories.

        Args:
            assignments: Output of assign()

        Returns:
            Dictionary mapping fragment ids to their categories in canonical order
        """
        inverted = defaultdict(list)
        for category in Category:
            for fragment in assignments.get(category, []):
                inverted[fragment.id].append(category)
        return dict(inverted)
