"""Pytest configuration and fixtures."""

import pytest

from quadrant_pipeline.models import Category, Fragment, FragmentType, Piece


@pytest.fixture
def simple_fragments():
    """Three fragments, each matching one category's primary keywords."""
    return [
        Fragment(id='f1', tags=('shape', 'layout')),
        Fragment(id='f2', tags=('mood', 'warmth')),
        Fragment(id='f3', tags=('audience', 'mobile')),
    ]


@pytest.fixture
def universal_fragments():
    """Eight fragments that score equally in every category."""
    return [
        Fragment(id=f'u{i}', tags=('shape', 'movement', 'mood', 'audience'))
        for i in range(1, 9)
    ]


@pytest.fixture
def image_fragment():
    """Image fragment with a colour palette and no keywords."""
    return Fragment(
        id='img1',
        title='Glazed cup',
        type=FragmentType.IMAGE,
        palette=('#8fa89b', '#f2efe6'),
    )


@pytest.fixture
def make_piece():
    """Factory for pieces with sensible defaults."""
    def _make(text, category=Category.FORM, priority=3, fragment_id=None, **kwargs):
        return Piece(
            text=text,
            category=category,
            priority=priority,
            fragment_id=fragment_id,
            **kwargs
        )
    return _make


@pytest.fixture
def round_pieces(make_piece):
    """A round of pieces with one exact and one near duplicate."""
    return {
        Category.FORM: [
            make_piece('Warm ceremonial calm', Category.FORM, 1, 'f2'),
            make_piece('Low grid of tables', Category.FORM, 2, 'f1'),
        ],
        Category.MOTION: [
            make_piece('Slow pour then whisk', Category.MOTION, 1, 'f4'),
        ],
        Category.EXPRESSION: [
            make_piece('Warm ceremonial calm tone', Category.EXPRESSION, 3, 'f2'),
            make_piece('Celadon quiet confidence', Category.EXPRESSION, 2, 'f5'),
        ],
        Category.FUNCTION: [
            make_piece('Mobile-first menu legibility', Category.FUNCTION, 1, 'f3'),
            make_piece('low grid of tables ', Category.FUNCTION, 4),
        ],
    }


@pytest.fixture
def test_config():
    """Test configuration."""
    return {
        'assignment': {
            'max_categories_per_fragment': 2,
            'max_fragments_per_category': 6,
            'min_fragments_per_category': 2,
        },
        'diversity': {
            'similarity_threshold': 0.5,
            'ngram_size': 2,
        },
        'candidates': {
            'enabled': True,
            'max_per_fragment': 2,
            'similarity_threshold': 0.4,
        },
        'pool': {
            'max_pieces_per_fragment': 2,
        },
    }
