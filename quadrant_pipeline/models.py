"""Data model shared by the assignment and filtering stages.

Fragments and pieces arrive from external collaborators as plain dicts
(usually decoded JSON); the ``from_dict`` constructors turn them into the
typed records used throughout the pipeline.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass, asdict


class Category(Enum):
    """The four fixed quadrants, declared in canonical order."""
    FORM = 'FORM'
    MOTION = 'MOTION'
    EXPRESSION = 'EXPRESSION'
    FUNCTION = 'FUNCTION'

    @classmethod
    def ordered(cls) -> List['Category']:
        """Return all categories in canonical order."""
        return list(cls)

    @classmethod
    def parse(cls, value) -> 'Category':
        """Parse a category label case-insensitively.

        Args:
            value: Category instance or label string

        Returns:
            Matching Category

        Raises:
            ValueError: If the label is not one of the four quadrants
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        raise ValueError(f"Unknown category: {value!r}")


class FragmentType(Enum):
    """Kind of user-supplied content."""
    TEXT = 'TEXT'
    IMAGE = 'IMAGE'


def normalize_text(text: str) -> str:
    """Normalize piece text for exact-match comparisons."""
    return text.lower().strip()


def _as_tuple(value) -> Tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


@dataclass(frozen=True)
class Fragment:
    """Content fragment with extracted features."""
    id: str
    title: str = ''
    summary: str = ''
    content: Optional[str] = None
    type: FragmentType = FragmentType.TEXT
    tags: Tuple[str, ...] = ()
    keywords: Tuple[str, ...] = ()
    themes: Tuple[str, ...] = ()
    palette: Tuple[str, ...] = ()
    objects: Tuple[str, ...] = ()
    mood: Optional[str] = None
    unique_insight: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def is_image(self) -> bool:
        return self.type is FragmentType.IMAGE

    def text_fields(self) -> List[str]:
        """Return every non-empty text feature, in scoring order."""
        values = [self.title, self.summary, self.content]
        values.extend(self.tags)
        values.extend(self.keywords)
        values.extend(self.themes)
        values.extend([self.mood, self.unique_insight])
        return [v for v in values if v]

    @classmethod
    def from_dict(cls, data: Dict) -> 'Fragment':
        """Build a fragment from a feature-extraction record.

        Accepts both snake_case and camelCase keys.

        Args:
            data: Fragment dictionary; ``id`` is required

        Returns:
            Fragment instance

        Raises:
            ValueError: If the record is not a mapping, ``id`` is missing
                or ``type`` is unknown
        """
        if not isinstance(data, dict):
            raise ValueError(f"Fragment record must be an object, got {type(data).__name__}")
        if not data.get('id'):
            raise ValueError("Fragment record is missing 'id'")

        raw_type = str(data.get('type') or 'TEXT').upper()
        try:
            fragment_type = FragmentType[raw_type]
        except KeyError:
            raise ValueError(f"Unknown fragment type: {data.get('type')!r}")

        return cls(
            id=str(data['id']),
            title=data.get('title') or '',
            summary=data.get('summary') or '',
            content=data.get('content'),
            type=fragment_type,
            tags=_as_tuple(data.get('tags')),
            keywords=_as_tuple(data.get('keywords')),
            themes=_as_tuple(data.get('themes')),
            palette=_as_tuple(data.get('palette')),
            objects=_as_tuple(data.get('objects')),
            mood=data.get('mood'),
            unique_insight=data.get('unique_insight', data.get('uniqueInsight')),
            image_url=data.get('image_url', data.get('imageUrl')),
        )


MIN_PRIORITY = 1
MAX_PRIORITY = 6


@dataclass
class Piece:
    """Short generated statement for one category.

    Priority 1 is the most important, 6 the least.
    """
    text: str
    category: Category
    priority: int = 3
    fragment_id: Optional[str] = None
    fragment_title: Optional[str] = None
    fragment_summary: str = ''
    saturation_level: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def normalized_text(self) -> str:
        return normalize_text(self.text)

    @property
    def is_grounded(self) -> bool:
        return bool(self.fragment_id)

    @property
    def word_count(self) -> int:
        return len(self.text.split())

    def to_dict(self) -> Dict:
        """Serialize to a JSON-friendly dictionary."""
        data = asdict(self)
        data['category'] = self.category.value
        return data

    @classmethod
    def from_dict(cls, data: Dict, category: Optional[Category] = None) -> 'Piece':
        """Build a piece from a generator record.

        Args:
            data: Piece dictionary (snake_case or camelCase keys)
            category: Category to use when the record has no ``mode``/``category``

        Returns:
            Piece instance

        Raises:
            ValueError: On a non-mapping record, an unknown category, or a
                priority that is not an integer in 1-6
        """
        if not isinstance(data, dict):
            raise ValueError(f"Piece record must be an object, got {type(data).__name__}")

        raw_category = data.get('category', data.get('mode'))
        if raw_category is None:
            if category is None:
                raise ValueError(f"Piece has no category: {data.get('text')!r}")
            resolved = category
        else:
            resolved = Category.parse(raw_category)

        raw_priority = data.get('priority', 3)
        try:
            priority = int(raw_priority)
        except (TypeError, ValueError):
            raise ValueError(f"Priority must be an integer, got {raw_priority!r}")
        if not MIN_PRIORITY <= priority <= MAX_PRIORITY:
            raise ValueError(
                f"Priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}, got {priority}"
            )

        return cls(
            text=str(data.get('text', '')),
            category=resolved,
            priority=priority,
            fragment_id=data.get('fragment_id', data.get('fragmentId')),
            fragment_title=data.get('fragment_title', data.get('fragmentTitle')),
            fragment_summary=data.get('fragment_summary', data.get('fragmentSummary')) or '',
            saturation_level=data.get('saturation_level', data.get('saturationLevel')),
            image_url=data.get('image_url', data.get('imageUrl')),
        )


def empty_category_map() -> Dict[Category, list]:
    """Return a fresh mapping with an empty list for every category."""
    return {category: [] for category in Category}
