"""Tests for RelevanceScorer."""

import pytest
from quadrant_pipeline.models import Category, Fragment, FragmentType
from quadrant_pipeline.relevance_scorer import RelevanceScorer


class TestRelevanceScorer:
    """Test RelevanceScorer class."""

    def test_initialization(self):
        """Test scorer initialization."""
        scorer = RelevanceScorer()
        assert set(scorer.keywords) == set(Category)
        assert 'layout' in scorer.keywords[Category.FORM]['primary']
        assert 'pulse' in scorer.keywords[Category.MOTION]['secondary']

    def test_build_text(self):
        """Test that all text features are joined and lowercased."""
        fragment = Fragment(
            id='f1',
            title='Tea House',
            summary='Evening',
            tags=('Grid',),
            mood='Calm',
            unique_insight='Steam',
        )
        text = RelevanceScorer.build_text(fragment)

        assert text == 'tea house evening grid calm steam'

    def test_primary_and_secondary_weights(self):
        """Test +3 per primary and +1 per secondary keyword."""
        scorer = RelevanceScorer()
        fragment = Fragment(id='f1', title='Layout and texture', summary='soft light')

        assert scorer.score(fragment, Category.FORM) == 8
        assert scorer.score(fragment, Category.MOTION) == 0

    def test_substring_matching(self):
        """Test keywords match inside longer words."""
        scorer = RelevanceScorer()
        fragment = Fragment(id='f1', summary='layouts')

        assert scorer.score(fragment, Category.FORM) == 3

    def test_no_keywords_scores_zero(self):
        """Test a fragment without keywords scores zero everywhere."""
        scorer = RelevanceScorer()
        fragment = Fragment(id='f1', title='Tea')

        assert all(score == 0 for score in scorer.score_all(fragment).values())

    def test_image_bonus(self, image_fragment):
        """Test images get +2, +1 with palette, for FORM and EXPRESSION only."""
        scorer = RelevanceScorer()
        scores = scorer.score_all(image_fragment)

        assert scores[Category.FORM] == 3
        assert scores[Category.EXPRESSION] == 3
        assert scores[Category.MOTION] == 0
        assert scores[Category.FUNCTION] == 0

    def test_image_without_palette(self):
        """Test the palette bonus needs a non-empty palette."""
        scorer = RelevanceScorer()
        fragment = Fragment(id='img', title='Glazed cup', type=FragmentType.IMAGE)

        assert scorer.score(fragment, Category.FORM) == 2
        assert scorer.score(fragment, Category.EXPRESSION) == 2

    def test_text_palette_has_no_bonus(self):
        """Test a palette on a text fragment is ignored."""
        scorer = RelevanceScorer()
        fragment = Fragment(id='f1', title='Glazed cup', palette=('#fff',))

        assert scorer.score(fragment, Category.FORM) == 0

    def test_keyword_override(self):
        """Test overriding one tier of one category."""
        scorer = RelevanceScorer(keywords={'MOTION': {'primary': ['Steam']}})
        fragment = Fragment(id='f1', summary='steam rising')

        assert scorer.keywords[Category.MOTION]['primary'] == ['steam']
        assert 'pulse' in scorer.keywords[Category.MOTION]['secondary']
        assert scorer.score(fragment, Category.MOTION) == 3

    def test_keyword_override_unknown_category(self):
        """Test overriding a category that does not exist."""
        with pytest.raises(ValueError):
            RelevanceScorer(keywords={'COLOUR': {'primary': ['red']}})

    def test_score_does_not_mutate(self, simple_fragments):
        """Test scoring leaves the fragment unchanged."""
        scorer = RelevanceScorer()
        before = simple_fragments[0]
        scorer.score_all(before)

        assert before == Fragment(id='f1', tags=('shape', 'layout'))

    def test_matched_keywords(self):
        """Test reporting which keywords matched."""
        scorer = RelevanceScorer()
        fragment = Fragment(id='f1', title='Layout and texture', summary='soft light')
        matched = scorer.matched_keywords(fragment, Category.FORM)

        assert matched['primary'] == {'layout', 'texture'}
        assert matched['secondary'] == {'soft', 'light'}

    def test_score_table(self, simple_fragments):
        """Test fragment x category score table."""
        scorer = RelevanceScorer()
        table = scorer.score_table(simple_fragments)

        assert table.shape == (3, 4)
        assert list(table.columns) == ['FORM', 'MOTION', 'EXPRESSION', 'FUNCTION']
        assert table.loc['f1', 'FORM'] == 6
        assert table.loc['f2', 'EXPRESSION'] == 6
        assert table.loc['f3', 'FUNCTION'] == 6
        assert table['MOTION'].sum() == 0

    def test_rank_categories(self):
        """Test categories are ranked by score with stable ties."""
        scorer = RelevanceScorer()
        fragment = Fragment(id='f1', tags=('mood',))
        ranked = scorer.rank_categories(fragment)

        assert ranked[0] == (Category.EXPRESSION, 3)
        assert [c for c, _ in ranked[1:]] == [Category.FORM, Category.MOTION, Category.FUNCTION]
