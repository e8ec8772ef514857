"""Quadrant Pipeline.

Assigns content fragments to four design quadrants and filters the pieces
generated for them:
- Relevance scoring
- Fragment assignment
- Cross-category diversity filtering
- Session-scoped piece pool
"""

from .models import Category, FragmentType, Fragment, Piece
from .relevance_scorer import RelevanceScorer
from .fragment_assigner import FragmentAssigner
from .similarity_engine import SimilarityEngine
from .diversity_filter import DiversityFilter, FilterResult
from .pool_coordinator import PoolCoordinator, PoolStats, EnqueueResult
from .pipeline import QuadrantPipeline, PipelineResult

__version__ = '1.0.0'

__all__ = [
    'Category',
    'FragmentType',
    'Fragment',
    'Piece',
    'RelevanceScorer',
    'FragmentAssigner',
    'SimilarityEngine',
    'DiversityFilter',
    'FilterResult',
    'PoolCoordinator',
    'PoolStats',
    'EnqueueResult',
    'QuadrantPipeline',
    'PipelineResult',
]
