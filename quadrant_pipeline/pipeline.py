"""Main Quadrant Pipeline.

Orchestrates fragment assignment, per-category generation and diversity
filtering for one round.
"""

import asyncio
import inspect
import json
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Dict, List, Mapping, Sequence

from .models import Category, Fragment, Piece, empty_category_map
from .relevance_scorer import RelevanceScorer
from .fragment_assigner import FragmentAssigner
from .diversity_filter import DiversityFilter
from .pool_coordinator import PoolCoordinator


# (category, assigned fragments) -> pieces, sync or async
PieceGenerator = Callable[[Category, List[Fragment]], object]


@dataclass
class PipelineResult:
    """Output of one pipeline round."""
    assignments: Dict[Category, List[Fragment]]
    pieces: Dict[Category, List[Piece]]
    metadata: Dict = field(default_factory=dict)
    candidate_stats: Dict[str, Dict] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        """Serialize to a JSON-friendly dictionary."""
        return {
            'metadata': self.metadata,
            'assignments': {
                category.value: [fragment.id for fragment in fragments]
                for category, fragments in self.assignments.items()
            },
            'pieces': {
                category.value: [piece.to_dict() for piece in pieces]
                for category, pieces in self.pieces.items()
            },
            'candidate_stats': self.candidate_stats,
        }


class QuadrantPipeline:
    """Main pipeline for quadrant assignment and piece filtering."""

    def __init__(self, config: Dict = None):
        """Initialize the pipeline.

        Args:
            config: Configuration dictionary
        """
        self.config = config or {}
        self.logger = self._setup_logger()

        assignment = self.config.get('assignment', {})
        diversity = self.config.get('diversity', {})
        candidates = dict(self.config.get('candidates', {}))
        self.candidates_enabled = candidates.pop('enabled', True)

        # Initialize modules
        self.relevance_scorer = RelevanceScorer(
            keywords=self.config.get('keywords')
        )

        self.fragment_assigner = FragmentAssigner(
            scorer=self.relevance_scorer,
            max_categories_per_fragment=assignment.get('max_categories_per_fragment', 2),
            max_fragments_per_category=assignment.get('max_fragments_per_category', 6),
            min_fragments_per_category=assignment.get('min_fragments_per_category', 2)
        )

        self.diversity_filter = DiversityFilter(
            similarity_threshold=diversity.get('similarity_threshold', 0.5),
            ngram_size=diversity.get('ngram_size', 2),
            candidate_config=candidates
        )

        self.logger.info("Quadrant Pipeline initialized")

    def _setup_logger(self) -> logging.Logger:
        """Setup logger for pipeline."""
        logger = logging.getLogger('QuadrantPipeline')
        logger.setLevel(logging.INFO)

        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger

    def assign_fragments(self, fragments: Sequence[Fragment]) -> Dict[Category, List[Fragment]]:
        """Assign fragments to categories.

        Args:
            fragments: Enriched fragments

        Returns:
            Mapping of category to assigned fragments
        """
        self.logger.info(f"Assigning {len(fragments)} fragments")

        assignments = self.fragment_assigner.assign(fragments)

        counts = ', '.join(f"{c.value}={len(assignments[c])}" for c in Category)
        self.logger.info(f"Fragment assignment: {counts}")
        return assignments

    async def _generate(
        self,
        category: Category,
        generator: PieceGenerator,
        fragments: List[Fragment]
    ) -> List[Piece]:
        result = generator(category, fragments)
        if inspect.isawaitable(result):
            result = await result

        pieces = []
        for item in result or []:
            piece = item if isinstance(item, Piece) else Piece.from_dict(item, category)
            if piece.category is not category:
                piece = replace(piece, category=category)
            pieces.append(piece)
        return pieces

    async def collect_pieces(
        self,
        assignments: Mapping[Category, List[Fragment]],
        generators: Mapping[Category, PieceGenerator]
    ) -> Dict[Category, List[Piece]]:
        """Run every category's generator concurrently.

        A generator that raises, or a category without a generator,
        contributes an empty list.

        Args:
            assignments: Output of assign_fragments()
            generators: Mapping of category to generator callable

        Returns:
            Raw pieces grouped by category
        """
        pieces = empty_category_map()
        categories = [c for c in Category if c in generators]

        for category in Category:
            if category not in generators:
                self.logger.warning(f"No generator for {category.value}")

        results = await asyncio.gather(
            *[
                self._generate(category, generators[category], list(assignments.get(category, [])))
                for category in categories
            ],
            return_exceptions=True
        )

        for category, result in zip(categories, results):
            if isinstance(result, Exception):
                self.logger.error(f"{category.value} generation failed: {result}")
                continue
            pieces[category] = result
            self.logger.info(f"{category.value}: {len(result)} pieces")

        return pieces

    def reconcile(
        self,
        pieces: Mapping[Category, List[Piece]]
    ) -> tuple:
        """Filter one round's complete set of pieces.

        Args:
            pieces: Raw pieces grouped by category

        Returns:
            Tuple of (filtered pieces, duplicates removed, candidate stats by label)
        """
        candidate_stats = {}
        screened = {}

        for category in Category:
            raw = list(pieces.get(category, []))
            if self.candidates_enabled:
                result = self.diversity_filter.filter_candidates(raw)
                candidate_stats[category.value] = result.stats()
                screened[category] = result.pieces
                self.logger.info(
                    f"{category.value}: {result.input_count} -> {result.output_count} candidates"
                )
            else:
                screened[category] = raw

        filtered, duplicates_removed = self.diversity_filter.filter(screened)
        self.logger.info(f"Removed {duplicates_removed} cross-category duplicates")

        return filtered, duplicates_removed, candidate_stats

    async def process_async(
        self,
        fragments: Sequence[Fragment],
        generators: Mapping[Category, PieceGenerator]
    ) -> PipelineResult:
        """Run a complete round.

        Args:
            fragments: Enriched fragments
            generators: Mapping of category to generator callable

        Returns:
            PipelineResult with assignments, filtered pieces and metadata
        """
        self.logger.info("Starting quadrant pipeline")
        start_time = datetime.now()

        assignments = self.assign_fragments(fragments)
        raw_pieces = await self.collect_pieces(assignments, generators)

        return self._finish(fragments, assignments, raw_pieces, start_time)

    def process_pieces(
        self,
        fragments: Sequence[Fragment],
        pieces: Mapping[Category, List[Piece]]
    ) -> PipelineResult:
        """Run a round with pieces that were generated elsewhere.

        Args:
            fragments: Enriched fragments
            pieces: Raw pieces grouped by category

        Returns:
            PipelineResult with assignments, filtered pieces and metadata
        """
        self.logger.info("Starting quadrant pipeline with pre-generated pieces")
        start_time = datetime.now()

        assignments = self.assign_fragments(fragments)
        return self._finish(fragments, assignments, pieces, start_time)

    def run(
        self,
        fragments: Sequence[Fragment],
        generators: Mapping[Category, PieceGenerator]
    ) -> PipelineResult:
        """Synchronous wrapper around process_async()."""
        return asyncio.run(self.process_async(fragments, generators))

    def _finish(self, fragments, assignments, raw_pieces, start_time) -> PipelineResult:
        filtered, duplicates_removed, candidate_stats = self.reconcile(raw_pieces)

        per_category = {c.value: len(filtered[c]) for c in Category}
        total_pieces = sum(per_category.values())

        fragment_ids = {fragment.id for fragment in fragments}
        cited = {
            piece.fragment_id
            for category in Category
            for piece in filtered[category]
            if piece.fragment_id in fragment_ids
        }
        coverage = len(cited) / len(fragments) if fragments else 0.0

        quality_scores = [s['quality_score'] for s in candidate_stats.values()]
        quality = round(sum(quality_scores) / len(quality_scores)) if quality_scores else 0

        duration = (datetime.now() - start_time).total_seconds()
        metadata = {
            'timestamp': start_time.isoformat(),
            'total_fragments': len(fragments),
            'total_pieces': total_pieces,
            'per_category_count': per_category,
            'quality_score': quality,
            'fragment_coverage': coverage,
            'cross_category_duplicates': duplicates_removed,
            'processing_time': duration,
        }

        self.logger.info(
            f"Pipeline complete in {duration:.2f} seconds: {total_pieces} pieces, "
            f"coverage={coverage:.0%}, duplicates={duplicates_removed}"
        )

        return PipelineResult(
            assignments=assignments,
            pieces=filtered,
            metadata=metadata,
            candidate_stats=candidate_stats,
        )

    def new_pool(self) -> PoolCoordinator:
        """Create an empty piece pool for a new session."""
        pool_config = self.config.get('pool', {})
        return PoolCoordinator(
            max_pieces_per_fragment=pool_config.get('max_pieces_per_fragment', 2)
        )

    def fill_pool(self, pool: PoolCoordinator, results: PipelineResult) -> Dict[str, int]:
        """Enqueue a round's filtered pieces into a session pool.

        Args:
            pool: The session's pool
            results: Result of a pipeline round

        Returns:
            Dictionary with total enqueued and skipped counts
        """
        enqueued = 0
        skipped = 0
        for category in Category:
            outcome = pool.enqueue(category, results.pieces.get(category, []))
            enqueued += outcome.enqueued
            skipped += outcome.skipped

        self.logger.info(f"Pool: enqueued {enqueued}, skipped {skipped}, size {pool.size()}")
        return {'enqueued': enqueued, 'skipped': skipped}

    def save_results(
        self,
        results: PipelineResult,
        output_path: str = 'quadrant_results.json'
    ):
        """Save results to JSON file.

        Args:
            results: Result of a pipeline round
            output_path: Output file path
        """
        with open(output_path, 'w') as f:
            json.dump(results.to_dict(), f, indent=2)
        self.logger.info(f"Results saved to {output_path}")
