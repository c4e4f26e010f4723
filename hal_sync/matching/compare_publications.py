"""
Find the local publication that best matches a HAL publication.

Publications are compared on their HAL ids, DOIs, titles, authors and
publication dates. Identical HAL ids or DOIs short-circuit to a certain match
(confidence 1.0); otherwise the similarity measures are averaged into a
confidence between 0 and 1.
"""
from __future__ import annotations

import logging
import math
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from ..logging_setup import get_logger, with_extras
from ..records import CandidateRecord, MatchOutcome, MatchResult, TargetRecord
from .similarity import authors_similarity, date_similarity, title_similarity

logger = get_logger(__name__)

_VERSION_SUFFIX = re.compile(r"v\d+$")


def _debug(msg: str, **extras) -> None:
    # called once per candidate; skip the JSON encoding when debug is off
    if not logger.isEnabledFor(logging.DEBUG):
        return
    if extras:
        with_extras(logger, **extras).debug(msg)
    else:
        logger.debug(msg)


@dataclass(frozen=True)
class MatchScores:
    title: Optional[float]
    authors: Optional[float]
    date: Optional[float]
    confidence: float


def normalize_identifier(identifier: Optional[str]) -> Optional[str]:
    """Drop the optional version suffix: `hal-012345v2` -> `hal-012345`."""
    if not identifier:
        return None
    value = _VERSION_SUFFIX.sub("", identifier.strip())
    return value or None


def have_same_identifier(target: TargetRecord, candidate: CandidateRecord) -> bool:
    target_id = normalize_identifier(target.identifier)
    return target_id is not None and target_id == normalize_identifier(candidate.identifier)


def have_same_alternate_identifier(target: TargetRecord, candidate: CandidateRecord) -> bool:
    # DOIs are compared verbatim
    return bool(target.alternate_identifier) and target.alternate_identifier == candidate.alternate_identifier


def is_exact_match(target: TargetRecord, candidate: CandidateRecord) -> bool:
    return have_same_identifier(target, candidate) or have_same_alternate_identifier(target, candidate)


def fuse_measures(measures: Iterable[Optional[float]]) -> float:
    """Mean of the computable measures; 0.0 when none can be computed."""
    valid = [m for m in measures if m is not None and not math.isnan(m)]
    if not valid:
        return 0.0
    return sum(valid) / len(valid)


def score_candidate(target: TargetRecord, candidate: CandidateRecord) -> MatchScores:
    title = title_similarity(target.titles, candidate.title)
    authors = authors_similarity(target.authors, candidate.authors)
    date = date_similarity(target.publication_date, candidate.date)
    # authors are counted twice on purpose: same weighting as the HAL updater
    confidence = fuse_measures([title, authors, date, authors])
    return MatchScores(title=title, authors=authors, date=date, confidence=confidence)


def find_corresponding_publication(
    target: TargetRecord,
    candidates: Iterable[CandidateRecord],
) -> MatchResult:
    """
    Return the candidate that best matches `target`, with its confidence.

    Candidates are scanned in order. The first one sharing the HAL id or DOI
    is returned immediately with confidence 1.0. Otherwise the first candidate
    seen is kept until another one scores strictly higher, so ties keep the
    earliest candidate. An empty candidate sequence yields (None, 0.0).
    """
    best_candidate: Optional[CandidateRecord] = None
    best_confidence = 0.0
    for candidate in candidates:
        if is_exact_match(target, candidate):
            _debug("Exact identifier match", target=target.label, candidate=candidate.label)
            return MatchResult(best=candidate, confidence=1.0, exact=True)
        scores = score_candidate(target, candidate)
        _debug(
            "Scored candidate",
            target=target.label,
            candidate=candidate.label,
            title=scores.title,
            authors=scores.authors,
            date=scores.date,
            confidence=scores.confidence,
        )
        if best_candidate is None or scores.confidence > best_confidence:
            best_candidate = candidate
            best_confidence = scores.confidence
    return MatchResult(best=best_candidate, confidence=best_confidence)


def match_publications(
    targets: Sequence[TargetRecord],
    candidates: Sequence[CandidateRecord],
    *,
    threshold: float,
    workers: int = 1,
) -> List[MatchOutcome]:
    """
    Match every target against the full candidate list and classify it as
    accepted (confidence >= threshold) or missing. Outcomes keep target order.
    """
    candidates = list(candidates)

    def _match_one(target: TargetRecord) -> MatchOutcome:
        result = find_corresponding_publication(target, candidates)
        return MatchOutcome(
            target=target,
            best=result.best,
            confidence=result.confidence,
            accepted=result.confidence >= threshold,
            exact=result.exact,
        )

    if workers > 1 and len(targets) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(_match_one, targets))
    return [_match_one(target) for target in targets]
