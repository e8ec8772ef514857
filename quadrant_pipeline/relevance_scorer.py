"""Relevance Scoring System for Fragment Assignment.

Scores how well a fragment fits each quadrant using weighted keyword matches.
"""

from typing import Dict, List, Sequence, Set
import pandas as pd

from .models import Category, Fragment


DEFAULT_KEYWORDS = {
    Category.FORM: {
        'primary': [
            'shape', 'structure', 'layout', 'composition', 'texture', 'material',
            'geometric', 'organic', 'silhouette', 'pattern', 'grid', 'balance',
            'proportion', 'weight', 'layering'
        ],
        'secondary': [
            'visual', 'surface', 'line', 'form', 'spatial', 'round', 'angular',
            'soft', 'sharp', 'heavy', 'light'
        ],
    },
    Category.MOTION: {
        'primary': [
            'movement', 'animation', 'transition', 'rhythm', 'pacing', 'flow',
            'pour', 'whisk', 'bloom', 'fade', 'snap', 'ease', 'timing', 'speed',
            'dynamic'
        ],
        'secondary': [
            'slow', 'fast', 'glide', 'hover', 'drift', 'settle', 'rise',
            'entrance', 'exit', 'micro', 'interaction', 'pulse'
        ],
    },
    Category.EXPRESSION: {
        'primary': [
            'emotion', 'mood', 'tone', 'personality', 'voice', 'feeling',
            'atmosphere', 'warmth', 'energy', 'calm', 'bold', 'quiet', 'playful',
            'serious', 'cultural'
        ],
        'secondary': [
            'happy', 'confident', 'elegant', 'modern', 'traditional', 'premium',
            'accessible', 'zen', 'ceremonial', 'spirit'
        ],
    },
    Category.FUNCTION: {
        'primary': [
            'audience', 'user', 'purpose', 'context', 'accessibility', 'platform',
            'constraint', 'mobile', 'responsive', 'legibility', 'usability',
            'goal', 'job'
        ],
        'secondary': [
            'print', 'screen', 'packaging', 'menu', 'navigation', 'button', 'icon',
            'shelf', 'retail', 'digital'
        ],
    },
}

# Quadrants where images are legible without any keyword support
IMAGE_BONUS_CATEGORIES = {Category.FORM, Category.EXPRESSION}


class RelevanceScorer:
    """Score fragment relevance to each quadrant based on keywords."""

    def __init__(
        self,
        keywords: Dict = None,
        primary_weight: int = 3,
        secondary_weight: int = 1,
        image_bonus: int = 2,
        palette_bonus: int = 1
    ):
        """Initialize the relevance scorer.

        Args:
            keywords: Optional keyword table override, mapping category
                      (or label) to {'primary': [...], 'secondary': [...]}.
                      Categories not present keep their default lists.
            primary_weight: Points per matched primary keyword
            secondary_weight: Points per matched secondary keyword
            image_bonus: Flat bonus for images in FORM and EXPRESSION
            palette_bonus: Extra bonus when such an image carries a palette
        """
        self.keywords = self._build_table(keywords)
        self.primary_weight = primary_weight
        self.secondary_weight = secondary_weight
        self.image_bonus = image_bonus
        self.palette_bonus = palette_bonus

    @staticmethod
    def _build_table(overrides: Dict = None) -> Dict[Category, Dict[str, List[str]]]:
        """Merge keyword overrides into the default table."""
        table = {
            category: {
                'primary': list(entry['primary']),
                'secondary': list(entry['secondary']),
            }
            for category, entry in DEFAULT_KEYWORDS.items()
        }

        for key, entry in (overrides or {}).items():
            category = Category.parse(key)
            for tier in ('primary', 'secondary'):
                if tier in entry:
                    table[category][tier] = [kw.lower() for kw in entry[tier]]

        return table

    @staticmethod
    def build_text(fragment: Fragment) -> str:
        """Concatenate a fragment's text features into one lowercase blob.

        Args:
            fragment: Fragment to flatten

        Returns:
            Lowercase text used for keyword matching
        """
        return ' '.join(fragment.text_fields()).lower()

    def matched_keywords(self, fragment: Fragment, category: Category) -> Dict[str, Set[str]]:
        """Return the primary and secondary keywords found in a fragment."""
        text = self.build_text(fragment)
        entry = self.keywords[category]
        return {
            'primary': {kw for kw in entry['primary'] if kw in text},
            'secondary': {kw for kw in entry['secondary'] if kw in text},
        }

    def score(self, fragment: Fragment, category: Category) -> int:
        """Score a (fragment, category) pair.

        Keywords match as substrings, so 'layout' also matches 'layouts'.

        Args:
            fragment: Fragment to score
            category: Target quadrant

        Returns:
            Non-negative integer score
        """
        text = self.build_text(fragment)
        entry = self.keywords[category]

        score = 0
        for kw in entry['primary']:
            if kw in text:
                score += self.primary_weight
        for kw in entry['secondary']:
            if kw in text:
                score += self.secondary_weight

        if fragment.is_image and category in IMAGE_BONUS_CATEGORIES:
            score += self.image_bonus
            if fragment.palette:
                score += self.palette_bonus

        return score

    def score_all(self, fragment: Fragment) -> Dict[Category, int]:
        """Score a fragment against every category, in canonical order."""
        return {category: self.score(fragment, category) for category in Category}

    def score_table(self, fragments: Sequence[Fragment]) -> pd.DataFrame:
        """Build a fragment x category score table.

        Args:
            fragments: Fragments to score

        Returns:
            DataFrame indexed by fragment id with one column per category label
        """
        columns = [category.value for category in Category]
        rows = [
            [self.score(fragment, category) for category in Category]
            for fragment in fragments
        ]
        index = pd.Index([fragment.id for fragment in fragments], name='fragment_id')
        return pd.DataFrame(rows, index=index, columns=columns, dtype=int)

    def rank_categories(self, fragment: Fragment) -> List[tuple]:
        """Rank categories for a fragment by score.

        Args:
            fragment: Fragment to rank

        Returns:
            List of (category, score) tuples, highest score first; ties keep
            canonical category order
        """
        scores = list(self.score_all(fragment).items())
        scores.sort(key=lambda x: x[1], reverse=True)
        return scores
