from .compare_publications import (
    MatchScores,
    find_corresponding_publication,
    match_publications,
    normalize_identifier,
    score_candidate,
)
from .similarity import authors_similarity, date_similarity, string_similarity, title_similarity

__all__ = [
    "MatchScores",
    "authors_similarity",
    "date_similarity",
    "find_corresponding_publication",
    "match_publications",
    "normalize_identifier",
    "score_candidate",
    "string_similarity",
    "title_similarity",
]
