"""Facial descriptor matching.

Finds the enrolled person whose stored descriptor is closest (Euclidean
distance) to a descriptor captured in the browser, as long as the distance
stays strictly under the acceptance threshold.

The scan is linear, O(N * D) per query. Enrolled sets are expected to stay in
the low hundreds, so no index is kept.
"""

import logging
import math
from typing import Iterable, List, NamedTuple, Optional, Sequence, Union

import numpy as np

from accounts.models.face import FaceMatch
from accounts.models.person import Person

logger = logging.getLogger(__name__)

# Tuned for the 128-d face-api.js descriptors
FACE_MATCH_THRESHOLD = 0.6

Embedding = Union[Sequence[float], np.ndarray]


class DimensionMismatch(ValueError):
    """Two compared embeddings do not have the same length."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Embedding length mismatch: {expected} != {actual}")
        self.expected = expected
        self.actual = actual


class Candidate(NamedTuple):
    identity_key: str
    embedding: Embedding


class Match(NamedTuple):
    identity_key: str
    distance: float


class CandidateScore(NamedTuple):
    """Outcome of comparing the query against one candidate.

    Exactly one of ``distance`` and ``error`` is set.
    """

    identity_key: str
    distance: Optional[float] = None
    error: Optional[Exception] = None


def _as_vector(embedding: Embedding) -> np.ndarray:
    vector = np.asarray(embedding, dtype=np.float64)
    if vector.ndim != 1:
        raise ValueError(f"Embedding must be one-dimensional, got shape {vector.shape}")
    if not np.all(np.isfinite(vector)):
        raise ValueError("Embedding contains non-finite values")
    return vector


def _check_threshold(threshold: float):
    if not threshold > 0:
        raise ValueError(f"Threshold must be positive, got {threshold}")


def distance(a: Embedding, b: Embedding) -> float:
    """Euclidean distance between two embeddings of equal length."""
    va = _as_vector(a)
    vb = _as_vector(b)
    if va.shape[0] != vb.shape[0]:
        raise DimensionMismatch(va.shape[0], vb.shape[0])
    return float(np.linalg.norm(va - vb))


def score_candidates(query: Embedding, candidates: Iterable[Candidate]) -> List[CandidateScore]:
    """Compare ``query`` against every candidate, keeping failures per candidate.

    A candidate whose embedding cannot be compared gets a score carrying the
    error instead of a distance; the remaining candidates are still scored.
    """
    query_vector = _as_vector(query)
    scores: List[CandidateScore] = []
    for candidate in candidates:
        try:
            scores.append(CandidateScore(candidate.identity_key, distance(query_vector, candidate.embedding)))
        except (DimensionMismatch, ValueError, TypeError) as e:
            scores.append(CandidateScore(candidate.identity_key, error=e))
    return scores


def _select_best(scores: Iterable[CandidateScore], threshold: float) -> Optional[Match]:
    best: Optional[Match] = None
    min_distance = math.inf
    for score in scores:
        if score.error is not None:
            continue
        # Strict comparisons: ties keep the first candidate seen, and nothing
        # at or beyond the threshold is ever accepted.
        if score.distance < min_distance and score.distance < threshold:
            min_distance = score.distance
            best = Match(score.identity_key, score.distance)
    return best


def find_best_match(
    query: Embedding,
    candidates: Iterable[Candidate],
    threshold: float = FACE_MATCH_THRESHOLD
) -> Optional[Match]:
    """Closest candidate strictly under ``threshold``, or None.

    Raises DimensionMismatch if any candidate has a different length than the
    query. Use match_identity for the lenient variant that skips bad entries.
    """
    _check_threshold(threshold)
    scores = score_candidates(query, candidates)
    for score in scores:
        if score.error is not None:
            raise score.error
    return _select_best(scores, threshold)


def confidence_from_distance(match_distance: float, threshold: float = FACE_MATCH_THRESHOLD) -> int:
    """Display confidence, 100 at distance 0 falling linearly to 0 at the threshold."""
    _check_threshold(threshold)
    if match_distance < 0 or match_distance > threshold:
        raise ValueError(
            f"Distance {match_distance} outside accepted range [0, {threshold}]"
        )
    value = max(0.0, min(100.0, (1 - match_distance / threshold) * 100))
    # half-up rounding
    return int(math.floor(value + 0.5))


def match_identity(
    query: Embedding,
    persons: Iterable[Person],
    threshold: float = FACE_MATCH_THRESHOLD
) -> Optional[FaceMatch]:
    """Find the enrolled person matching ``query``.

    Persons without a stored descriptor are ignored. Candidates that fail to
    compare are logged and skipped. Any other failure during the scan is
    logged and reported as no match, so a corrupt record reads the same as
    an unknown face. Whether the person may log in is left to the caller.
    """
    _check_threshold(threshold)

    try:
        enrolled = {}
        candidates: List[Candidate] = []
        for person in persons:
            if not person.face_descriptor:
                continue
            candidates.append(Candidate(person.id, person.face_descriptor))
            enrolled.setdefault(person.id, person)

        if not candidates:
            return None

        scores = score_candidates(query, candidates)
        for score in scores:
            if score.error is not None:
                logger.warning(f"Skipping face descriptor of {score.identity_key}: {score.error}")

        match = _select_best(scores, threshold)
        if match is None:
            return None

        person = enrolled[match.identity_key]
        return FaceMatch(
            id=person.id,
            email=person.email,
            name=person.name,
            company=person.company,
            distance=match.distance,
            confidence=confidence_from_distance(match.distance, threshold)
        )
    except Exception as e:
        logger.error(f"Face matching failed: {str(e)}", exc_info=True)
        return None
