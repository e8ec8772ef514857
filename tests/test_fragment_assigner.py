"""Tests for FragmentAssigner."""

import pytest
from quadrant_pipeline.models import Category, Fragment
from quadrant_pipeline.fragment_assigner import FragmentAssigner


def ids(fragments):
    return [fragment.id for fragment in fragments]


@pytest.fixture
def mixed_fragments():
    """Fragments with varied keyword coverage."""
    return [
        Fragment(id='a', title='Layout grid', summary='calm mood', tags=('mobile',)),
        Fragment(id='b', title='Pour rhythm', summary='slow fade', tags=('texture',)),
        Fragment(id='c', title='Bold voice', keywords=('playful', 'energy')),
        Fragment(id='d', title='Menu legibility', themes=('audience', 'platform')),
        Fragment(id='e', title='Tea'),
        Fragment(id='f', title='Composition balance', mood='quiet warmth'),
        Fragment(id='g', title='Animation timing', summary='transition speed'),
        Fragment(id='h', title='User goal', summary='responsive context'),
        Fragment(id='i', title='Organic pattern', summary='layering material'),
        Fragment(id='j', title='Snap ease', summary='bloom dynamic'),
    ]


class TestFragmentAssigner:
    """Test FragmentAssigner class."""

    def test_initialization(self):
        """Test assigner defaults."""
        assigner = FragmentAssigner()
        assert assigner.max_categories_per_fragment == 2
        assert assigner.max_fragments_per_category == 6
        assert assigner.min_fragments_per_category == 2

    def test_empty_input(self):
        """Test zero fragments yields four empty lists."""
        assignments = FragmentAssigner().assign([])

        assert set(assignments) == set(Category)
        assert all(fragments == [] for fragments in assignments.values())

    def test_scored_pairs_excludes_zero(self, simple_fragments):
        """Test only positive-score pairs are enumerated."""
        pairs = FragmentAssigner().scored_pairs(simple_fragments)

        assert [(f.id, c) for f, c, _ in pairs] == [
            ('f1', Category.FORM),
            ('f2', Category.EXPRESSION),
            ('f3', Category.FUNCTION),
        ]

    def test_scored_pairs_sorted_stable(self):
        """Test pairs sort by score with enumeration order on ties."""
        fragments = [
            Fragment(id='low', tags=('mood',)),
            Fragment(id='high', tags=('shape', 'layout')),
            Fragment(id='tie', tags=('calm',)),
        ]
        pairs = FragmentAssigner().scored_pairs(fragments)

        assert [(f.id, s) for f, _, s in pairs] == [('high', 6), ('low', 3), ('tie', 3)]

    def test_end_to_end_scenario(self, simple_fragments):
        """Test each fragment lands in its category and MOTION is topped up."""
        assignments = FragmentAssigner().assign(simple_fragments)

        assert 'f1' in ids(assignments[Category.FORM])
        assert 'f2' in ids(assignments[Category.EXPRESSION])
        assert 'f3' in ids(assignments[Category.FUNCTION])
        assert ids(assignments[Category.MOTION]) == ['f1', 'f3']

    def test_end_to_end_exact_layout(self, simple_fragments):
        """Test the full top-up outcome for three single-category fragments."""
        assignments = FragmentAssigner().assign(simple_fragments)

        assert ids(assignments[Category.FORM]) == ['f1', 'f2']
        assert ids(assignments[Category.MOTION]) == ['f1', 'f3']
        assert ids(assignments[Category.EXPRESSION]) == ['f2']
        assert ids(assignments[Category.FUNCTION]) == ['f3']

    def test_fragment_cap(self, mixed_fragments):
        """Test no fragment appears in more than two categories."""
        assignments = FragmentAssigner().assign(mixed_fragments)
        inverted = FragmentAssigner.fragment_categories(assignments)

        assert all(len(categories) <= 2 for categories in inverted.values())

    def test_category_cap(self, universal_fragments, mixed_fragments):
        """Test no category exceeds six members."""
        assignments = FragmentAssigner().assign(universal_fragments + mixed_fragments)

        assert all(len(fragments) <= 6 for fragments in assignments.values())

    def test_no_duplicate_membership(self, mixed_fragments):
        """Test a fragment appears at most once per category."""
        assignments = FragmentAssigner().assign(mixed_fragments)

        for fragments in assignments.values():
            assert len(ids(fragments)) == len(set(ids(fragments)))

    def test_top_up_coverage(self, universal_fragments):
        """Test eight fragments eligible everywhere cover every category."""
        assignments = FragmentAssigner().assign(universal_fragments)

        assert all(len(fragments) >= 2 for fragments in assignments.values())
        assert ids(assignments[Category.FORM]) == ['u1', 'u2', 'u3', 'u4', 'u5', 'u6']
        assert ids(assignments[Category.EXPRESSION]) == ['u7', 'u8']

    def test_top_up_without_scores(self):
        """Test fragments with no keywords only fill through top-up."""
        fragments = [Fragment(id=f'n{i}', title='Tea') for i in range(1, 9)]
        assignments = FragmentAssigner().assign(fragments)

        assert ids(assignments[Category.FORM]) == ['n1', 'n2']
        assert ids(assignments[Category.MOTION]) == ['n1', 'n2']
        assert ids(assignments[Category.EXPRESSION]) == ['n3', 'n4']
        assert ids(assignments[Category.FUNCTION]) == ['n3', 'n4']

    def test_small_pool_accepted(self):
        """Test a single fragment leaves categories under-filled without error."""
        assignments = FragmentAssigner().assign([Fragment(id='solo', tags=('shape',))])

        assert ids(assignments[Category.FORM]) == ['solo']
        assert ids(assignments[Category.MOTION]) == ['solo']
        assert assignments[Category.EXPRESSION] == []
        assert assignments[Category.FUNCTION] == []

    def test_determinism(self, mixed_fragments):
        """Test repeated runs give identical output."""
        assigner = FragmentAssigner()
        first = {c: ids(f) for c, f in assigner.assign(mixed_fragments).items()}
        second = {c: ids(f) for c, f in assigner.assign(list(mixed_fragments)).items()}

        assert first == second

    def test_custom_caps(self, universal_fragments):
        """Test caps are configurable."""
        assigner = FragmentAssigner(max_categories_per_fragment=1, max_fragments_per_category=2)
        assignments = assigner.assign(universal_fragments)
        inverted = FragmentAssigner.fragment_categories(assignments)

        assert all(len(fragments) == 2 for fragments in assignments.values())
        assert all(len(categories) == 1 for categories in inverted.values())
