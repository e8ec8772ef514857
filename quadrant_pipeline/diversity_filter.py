"""Diversity Filtering for generated pieces.

Removes exact and near-duplicate pieces across categories, and screens a
single generator's raw candidates for quality and fragment quotas.
"""

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Tuple

from .models import Category, Piece, normalize_text
from .similarity_engine import SimilarityEngine


logger = logging.getLogger(__name__)


DEFAULT_BLACKLIST = [
    'glass morphism',
    'glassmorphism',
    'glass morphism as metaphor',
    'what is the',
    'how does',
    'why should',
    'what makes',
    'consider the',
    'think about',
]


@dataclass
class FilterResult:
    """Candidate filtering result."""
    pieces: List[Piece]
    input_count: int
    filtered_reasons: Dict[str, int] = field(default_factory=dict)
    quality_score: int = 0

    @property
    def output_count(self) -> int:
        return len(self.pieces)

    @property
    def unique_rate(self) -> float:
        return self.output_count / self.input_count if self.input_count else 0.0

    @property
    def grounded_rate(self) -> float:
        if not self.pieces:
            return 0.0
        return sum(1 for p in self.pieces if p.is_grounded) / len(self.pieces)

    def stats(self) -> Dict:
        """Return the statistics as a plain dictionary."""
        return {
            'input_count': self.input_count,
            'output_count': self.output_count,
            'filtered_reasons': dict(self.filtered_reasons),
            'unique_rate': self.unique_rate,
            'fragment_coverage': self.grounded_rate,
            'quality_score': self.quality_score,
        }


class DiversityFilter:
    """Filter duplicate and near-duplicate pieces."""

    def __init__(
        self,
        similarity_threshold: float = 0.5,
        ngram_size: int = 2,
        candidate_config: Dict = None
    ):
        """Initialize the diversity filter.

        Args:
            similarity_threshold: Cross-category pairs scoring above this are
                                  near-duplicates
            ngram_size: Words per n-gram for similarity
            candidate_config: Settings for filter_candidates(); keys
                              'max_per_fragment', 'similarity_threshold',
                              'min_words', 'max_words', 'blacklist',
                              'echo_ratio', 'min_word_length'
        """
        self.similarity_threshold = similarity_threshold
        self.engine = SimilarityEngine(ngram_size=ngram_size)

        config = self._get_default_candidate_config()
        config.update(candidate_config or {})
        self.candidate_config = config
        self.candidate_engine = SimilarityEngine(
            ngram_size=ngram_size,
            min_word_length=config['min_word_length']
        )
        self.blacklist = [phrase.lower() for phrase in config['blacklist']]

    @staticmethod
    def _get_default_candidate_config() -> Dict:
        """Return default candidate filter configuration."""
        return {
            'max_per_fragment': 2,
            'similarity_threshold': 0.4,
            'min_words': 2,
            'max_words': 5,
            'blacklist': list(DEFAULT_BLACKLIST),
            'echo_ratio': 0.8,
            'min_word_length': 3,
        }

    # ========== Cross-category passes ==========

    def remove_exact_duplicates(
        self,
        pieces: Mapping[Category, List[Piece]]
    ) -> Tuple[Dict[Category, List[Piece]], int]:
        """Drop pieces whose normalized text was already seen in any category.

        Categories are walked in canonical order, so the earliest category
        keeps the surviving copy.

        Args:
            pieces: Pieces grouped by category

        Returns:
            Tuple of (filtered pieces by category, number removed)
        """
        seen = set()
        removed = 0
        result = {}

        for category in Category:
            kept = []
            for piece in pieces.get(category, []):
                normalized = piece.normalized_text
                if normalized in seen:
                    removed += 1
                    logger.debug(
                        f"Removed cross-category duplicate: '{piece.text}' from {category.value}"
                    )
                    continue
                seen.add(normalized)
                kept.append(piece)
            result[category] = kept

        return result, removed

    def remove_similar_pieces(
        self,
        pieces: Mapping[Category, List[Piece]]
    ) -> Tuple[Dict[Category, List[Piece]], int]:
        """Remove near-duplicate pieces across different categories.

        Pieces are enumerated in canonical category order, then list order.
        For each similar pair the piece with the higher priority number is
        removed; on equal priority the later piece in that enumeration goes.

        Args:
            pieces: Pieces grouped by category

        Returns:
            Tuple of (filtered pieces by category, number removed)
        """
        flat = [
            (category, index, piece)
            for category in Category
            for index, piece in enumerate(pieces.get(category, []))
        ]
        grams = [self.engine.ngrams(piece.text) for _, _, piece in flat]

        to_remove = set()
        for i in range(len(flat)):
            for j in range(i + 1, len(flat)):
                cat1, idx1, piece1 = flat[i]
                cat2, idx2, piece2 = flat[j]

                if cat1 is cat2:
                    continue

                similarity = self.engine.jaccard(grams[i], grams[j])
                if similarity <= self.similarity_threshold:
                    continue

                if piece1.priority > piece2.priority:
                    to_remove.add((cat1, idx1))
                else:
                    to_remove.add((cat2, idx2))
                logger.debug(
                    f"Removed similar piece ({similarity:.0%} similar): "
                    f"'{piece1.text}' vs '{piece2.text}'"
                )

        result = {
            category: [
                piece for index, piece in enumerate(pieces.get(category, []))
                if (category, index) not in to_remove
            ]
            for category in Category
        }
        return result, len(to_remove)

    def filter(
        self,
        pieces: Mapping[Category, List[Piece]]
    ) -> Tuple[Dict[Category, List[Piece]], int]:
        """Apply both cross-category passes.

        The caller's mapping and lists are left untouched.

        Args:
            pieces: Complete set of one round's pieces grouped by category;
                    missing categories count as empty

        Returns:
            Tuple of (filtered pieces by category, total duplicates removed)
        """
        exact, exact_removed = self.remove_exact_duplicates(pieces)
        result, similar_removed = self.remove_similar_pieces(exact)

        if exact_removed or similar_removed:
            logger.info(
                f"Diversity filter removed {exact_removed} exact and "
                f"{similar_removed} similar duplicates"
            )

        return result, exact_removed + similar_removed

    # ========== Per-category candidate screening ==========

    def contains_blacklisted(self, text: str) -> bool:
        """Check if text contains a blacklisted phrase."""
        lower = text.lower()
        return any(phrase in lower for phrase in self.blacklist)

    def summary_echoes_title(self, summary: str, title: str) -> bool:
        """Check if a justification merely repeats the fragment title.

        Only words longer than three characters are compared.
        """
        if not summary or not title:
            return False

        summary_words = {w for w in summary.lower().split() if len(w) > 3}
        title_words = [w for w in title.lower().split() if len(w) > 3]

        if not title_words:
            return False

        matches = sum(1 for w in title_words if w in summary_words)
        return matches / len(title_words) > self.candidate_config['echo_ratio']

    def _rejection_reason(
        self,
        piece: Piece,
        used_texts: set,
        accepted: List[Piece],
        fragment_counts: Dict[str, int]
    ) -> str:
        config = self.candidate_config
        normalized = piece.normalized_text

        if self.contains_blacklisted(normalized):
            return 'blacklisted'
        if normalized.endswith('?'):
            return 'question'
        if not config['min_words'] <= piece.word_count <= config['max_words']:
            return 'word_count'
        if normalized in used_texts:
            return 'duplicate_text'

        for existing in accepted:
            similarity = self.candidate_engine.similarity(normalized, existing.normalized_text)
            if similarity > config['similarity_threshold']:
                return 'semantic_duplicate'

        if piece.fragment_id and fragment_counts[piece.fragment_id] >= config['max_per_fragment']:
            return 'fragment_quota'
        if piece.fragment_title and piece.fragment_summary:
            if self.summary_echoes_title(piece.fragment_summary, piece.fragment_title):
                return 'summary_echoes_title'

        return ''

    def filter_candidates(
        self,
        pieces: Iterable[Piece],
        existing: Iterable[Piece] = (),
        avoid_phrases: Iterable[str] = ()
    ) -> FilterResult:
        """Screen one generator's raw candidates.

        Args:
            pieces: Candidate pieces in generator order
            existing: Pieces already delivered; their texts are excluded
            avoid_phrases: Extra texts to exclude

        Returns:
            FilterResult with accepted pieces and rejection tallies
        """
        pieces = list(pieces)
        used_texts = {p.normalized_text for p in existing}
        used_texts.update(normalize_text(phrase) for phrase in avoid_phrases)

        reasons = Counter()
        fragment_counts = defaultdict(int)
        accepted = []

        for piece in pieces:
            reason = self._rejection_reason(piece, used_texts, accepted, fragment_counts)
            if reason:
                reasons[reason] += 1
                continue

            if piece.fragment_id:
                fragment_counts[piece.fragment_id] += 1
            used_texts.add(piece.normalized_text)
            accepted.append(piece)

        return FilterResult(
            pieces=accepted,
            input_count=len(pieces),
            filtered_reasons=dict(reasons),
            quality_score=self.quality_score(accepted),
        )

    @staticmethod
    def quality_score(pieces: List[Piece]) -> int:
        """Score a filtered piece set from 0 to 100.

        Base 50, up to 25 for grounding, 15 for fragment diversity and 10
        for justification length.
        """
        if not pieces:
            return 0

        grounded = [p for p in pieces if p.is_grounded]
        distinct_fragments = len({p.fragment_id for p in grounded})

        score = 50.0
        score += len(grounded) / len(pieces) * 25
        score += distinct_fragments / max(1, len(pieces)) * 15

        avg_reasoning = sum(len(p.fragment_summary or '') for p in pieces) / len(pieces)
        score += min(10.0, avg_reasoning / 10)

        return int(round(min(100.0, score)))
