"""N-gram Similarity for short texts.

Compares pieces by the Jaccard index of their word bigram sets.
"""

from typing import List, Sequence, Set, Tuple
import numpy as np


class SimilarityEngine:
    """Word n-gram Jaccard similarity."""

    def __init__(self, ngram_size: int = 2, min_word_length: int = 1):
        """Initialize the engine.

        Args:
            ngram_size: Number of words per n-gram (default: 2)
            min_word_length: Words shorter than this are dropped before
                             building n-grams (default: keep everything)
        """
        self.ngram_size = ngram_size
        self.min_word_length = min_word_length

    def tokenize(self, text: str) -> List[str]:
        """Lowercase and whitespace-split text.

        Args:
            text: Input text

        Returns:
            List of lowercase words (punctuation kept)
        """
        if not isinstance(text, str):
            return []
        return [w for w in text.lower().split() if len(w) >= self.min_word_length]

    def ngrams(self, text: str) -> Set[str]:
        """Build the set of contiguous word n-grams.

        Args:
            text: Input text

        Returns:
            Set of space-joined n-grams; empty if the text is too short
        """
        words = self.tokenize(text)
        n = self.ngram_size
        return {' '.join(words[i:i + n]) for i in range(len(words) - n + 1)}

    @staticmethod
    def jaccard(set1: Set[str], set2: Set[str]) -> float:
        """Jaccard index of two sets, 0.0 if either is empty."""
        if not set1 or not set2:
            return 0.0
        return len(set1 & set2) / len(set1 | set2)

    def similarity(self, text1: str, text2: str) -> float:
        """Calculate similarity between two texts.

        Args:
            text1: First text
            text2: Second text

        Returns:
            Similarity score (0-1)
        """
        return self.jaccard(self.ngrams(text1), self.ngrams(text2))

    def find_similar_pairs(
        self,
        texts: Sequence[str],
        threshold: float = 0.5
    ) -> List[Tuple[int, int, float]]:
        """Find pairs of texts above a similarity threshold.

        Args:
            texts: Texts to compare
            threshold: Pairs must score strictly above this value

        Returns:
            List of (index1, index2, similarity) tuples with index1 < index2,
            in enumeration order
        """
        grams = [self.ngrams(text) for text in texts]
        pairs = []

        for i in range(len(texts)):
            for j in range(i + 1, len(texts)):
                similarity = self.jaccard(grams[i], grams[j])
                if similarity > threshold:
                    pairs.append((i, j, similarity))

        return pairs

    def build_similarity_matrix(self, texts: Sequence[str]) -> np.ndarray:
        """Build the full similarity matrix for texts.

        Args:
            texts: Texts to compare

        Returns:
            Symmetric (n, n) matrix with 1.0 on the diagonal
        """
        n = len(texts)
        matrix = np.zeros((n, n))
        grams = [self.ngrams(text) for text in texts]

        for i in range(n):
            for j in range(i + 1, n):
                similarity = self.jaccard(grams[i], grams[j])
                matrix[i][j] = similarity
                matrix[j][i] = similarity

        np.fill_diagonal(matrix, 1.0)

        return matrix
