"""
Publication records exchanged between the HAL client, the local archive
reader and the matching engine.

Absent values are always ``None``: blank strings and empty lists coming from
either source are normalized away so the similarity measures can tell
"missing" apart from "present but different".
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

DateLike = Union[dt.date, dt.datetime, str]


def _clean_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    value = value.strip()
    return value or None


def _clean_str_tuple(value: Any) -> Optional[Tuple[str, ...]]:
    """Coerce a string or a list of strings into a tuple, dropping blanks."""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        items = [_clean_str(v) for v in value]
    else:
        items = [_clean_str(value)]
    items = [v for v in items if v]
    return tuple(items) or None


def _clean_date(value: Any) -> Optional[DateLike]:
    if isinstance(value, (dt.date, dt.datetime)):
        return value
    return _clean_str(value)


@dataclass(frozen=True)
class TargetRecord:
    identifier: Optional[str]
    alternate_identifier: Optional[str] = None
    titles: Tuple[str, ...] = ()
    authors: Optional[Tuple[str, ...]] = None
    publication_date: Optional[DateLike] = None
    doc_id: Optional[str] = None
    uri: Optional[str] = None
    abstract: Optional[Tuple[str, ...]] = None
    keywords: Optional[Tuple[str, ...]] = None
    doc_type: Optional[str] = None
    journal_title: Optional[str] = None
    conference_title: Optional[str] = None
    book_title: Optional[str] = None
    bibtex: Optional[str] = None

    def __post_init__(self) -> None:
        # callers may hand over a single title string
        if isinstance(self.titles, str):
            object.__setattr__(self, "titles", _clean_str_tuple(self.titles) or ())
        elif not isinstance(self.titles, tuple):
            object.__setattr__(self, "titles", tuple(self.titles))
        if self.authors is not None and not isinstance(self.authors, tuple):
            object.__setattr__(self, "authors", _clean_str_tuple(self.authors))

    @property
    def label(self) -> str:
        return self.identifier or self.doc_id or "<unknown>"

    @classmethod
    def from_hal_doc(cls, doc: Dict[str, Any]) -> "TargetRecord":
        """Build a target from one document of the HAL search API response."""
        return cls(
            identifier=_clean_str(doc.get("halId_s")),
            alternate_identifier=_clean_str(doc.get("doiId_s")),
            titles=_clean_str_tuple(doc.get("title_s")) or (),
            authors=_clean_str_tuple(doc.get("authFullName_s")),
            publication_date=_clean_date(doc.get("publicationDate_s")),
            doc_id=_clean_str(doc.get("docid")),
            uri=_clean_str(doc.get("uri_s")),
            abstract=_clean_str_tuple(doc.get("abstract_s")),
            keywords=_clean_str_tuple(doc.get("keyword_s")),
            doc_type=_clean_str(doc.get("docType_s")),
            journal_title=_clean_str(doc.get("journalTitle_s")),
            conference_title=_clean_str(doc.get("conferenceTitle_s")),
            book_title=_clean_str(doc.get("bookTitle_s")),
            bibtex=_clean_str(doc.get("label_bibtex")),
        )


@dataclass(frozen=True)
class CandidateRecord:
    identifier: Optional[str]
    alternate_identifier: Optional[str] = None
    title: Optional[str] = None
    authors: Optional[Tuple[str, ...]] = None
    date: Optional[DateLike] = None
    folder_path: Optional[str] = None
    folder_name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.authors is not None and not isinstance(self.authors, tuple):
            object.__setattr__(self, "authors", _clean_str_tuple(self.authors))

    @property
    def label(self) -> str:
        return self.folder_name or self.identifier or "<unknown>"

    @classmethod
    def from_front_matter(cls, document: Dict[str, Any], folder_path: Optional[Union[str, Path]] = None) -> "CandidateRecord":
        """Build a candidate from the parsed front matter of a local ``index.md``."""
        path = Path(folder_path) if folder_path is not None else None
        return cls(
            identifier=_clean_str(document.get("hal")),
            alternate_identifier=_clean_str(document.get("doi")),
            title=_clean_str(document.get("title")),
            authors=_clean_str_tuple(document.get("authors")),
            date=_clean_date(document.get("date")),
            folder_path=str(path) if path is not None else None,
            folder_name=path.name if path is not None else None,
        )


@dataclass(frozen=True)
class MatchResult:
    best: Optional[CandidateRecord]
    confidence: float
    exact: bool = False


@dataclass(frozen=True)
class MatchOutcome:
    target: TargetRecord
    best: Optional[CandidateRecord]
    confidence: float
    accepted: bool
    exact: bool = False
