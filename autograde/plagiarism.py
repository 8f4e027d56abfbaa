"""
Plagiarism detection for free-text answers.

Compares an answer against a small reference corpus with word-frequency
cosine similarity. This is a threshold check against known sources, not a
search over a large corpus.
"""

import logging
from collections.abc import Iterable

from autograde.models import PlagiarismMatch, PlagiarismReport, ReferenceSource
from autograde.text import cosine_similarity, normalize_text

logger = logging.getLogger(__name__)


class PlagiarismDetector:
    """
    Flags answers that are too similar to any reference source.

    Each flagged source is reported with its similarity and a few 3-word
    phrases that appear verbatim in both texts as evidence.
    """

    PHRASE_LENGTH = 3
    MAX_MATCHED_PHRASES = 5

    def __init__(self, threshold: float = 0.8):
        """
        Initialize the detector.

        Args:
            threshold: Similarity a source must exceed to count as a match.
        """
        self.threshold = threshold

    def detect(
        self,
        text: str | None,
        reference_corpus: Iterable[ReferenceSource],
        threshold: float | None = None,
    ) -> PlagiarismReport:
        """
        Compare an answer against every reference source.

        Never raises: on any failure an empty, non-plagiarized report is
        returned.

        Args:
            text: The student's answer.
            reference_corpus: Sources to compare against.
            threshold: Override the detector's threshold for this call.

        Returns:
            PlagiarismReport.
        """
        limit = self.threshold if threshold is None else threshold
        try:
            matches: list[PlagiarismMatch] = []
            for reference in reference_corpus:
                similarity = cosine_similarity(text, reference.text)
                if similarity > limit:
                    matches.append(
                        PlagiarismMatch(
                            source=reference.source,
                            similarity=similarity,
                            matched_text=self.find_matching_segments(text or "", reference.text),
                        )
                    )
        except Exception:
            logger.exception("Plagiarism detection failed")
            return PlagiarismReport()

        if matches:
            logger.info(
                "Answer matched %d reference source(s), max similarity %.2f",
                len(matches),
                max(m.similarity for m in matches),
            )

        return PlagiarismReport(
            is_plagiarized=bool(matches),
            plagiarism_score=max((m.similarity for m in matches), default=0.0),
            matches=tuple(matches),
        )

    def find_matching_segments(self, candidate: str, reference: str) -> tuple[str, ...]:
        """
        Find 3-word phrases of the candidate that also occur in the reference.

        Both texts are normalized first. At most MAX_MATCHED_PHRASES distinct
        phrases are returned, in the order they occur in the candidate.
        """
        words = normalize_text(candidate).split()
        reference_text = f" {normalize_text(reference)} "

        found: list[str] = []
        for i in range(len(words) - self.PHRASE_LENGTH + 1):
            phrase = " ".join(words[i : i + self.PHRASE_LENGTH])
            if phrase in found:
                continue
            if f" {phrase} " in reference_text:
                found.append(phrase)
                if len(found) >= self.MAX_MATCHED_PHRASES:
                    break

        return tuple(found)
