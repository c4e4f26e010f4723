from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

import requests

from .logging_setup import get_logger, with_extras
from .records import TargetRecord
from .runtime_config import RUNTIME_CONFIG

logger = get_logger(__name__)


# docid: internal HAL id, unique but not useful for matching
# label_s: natural language citation
# uri_s: link to the HAL page
# title_s: one title per language
# doiId_s: DOI, not always present
# halId_s: HAL identifier, may carry a version suffix (hal-012345v2)
# abstract_s / keyword_s / docType_s / *Title_s: used when creating files
# authFullName_s: author names, not always present
# label_bibtex: ready-made BibTeX entry
HAL_FIELDS = [
    "docid", "label_s", "uri_s", "title_s", "doiId_s", "halId_s",
    "abstract_s", "keyword_s", "publicationDate_s", "publicationLocation_s",
    "authFullName_s", "bookTitle_s", "conferenceTitle_s", "docType_s",
    "journalTitle_s", "label_bibtex",
]


class HalApiError(RuntimeError):
    pass


def _info(msg: str, **extras: Any) -> None:
    if extras:
        with_extras(logger, **extras).info(msg)
    else:
        logger.info(msg)


def _warn(msg: str, **extras: Any) -> None:
    if extras:
        with_extras(logger, **extras).warning(msg)
    else:
        logger.warning(msg)


def build_search_params(author_id: str, rows: Optional[int] = None) -> Dict[str, str]:
    params = {
        "q": f"authIdHal_s:{author_id}",
        "wt": "json",
        "fl": ",".join(HAL_FIELDS),
    }
    if rows:
        params["rows"] = str(int(rows))
    return params


def hal_api_url() -> str:
    """HAL search endpoint: `HAL_API_URL` from the environment, else `[hal].api_url`."""
    return os.environ.get("HAL_API_URL") or RUNTIME_CONFIG.hal.api_url


def _search(sess: requests.Session, url: str, params: Dict[str, str], timeout: int, author_id: str) -> List[Dict[str, Any]]:
    try:
        r = sess.get(url, params=params, timeout=timeout)
    except requests.RequestException as e:
        _warn("HAL network error", error=str(e), author_id=author_id)
        raise HalApiError(f"HAL request failed: {e}") from e

    if not r.ok:
        body = r.text[:500]
        _warn("HAL HTTP error", status=r.status_code, url=r.url, body=body)
        raise HalApiError(f"HAL returned HTTP {r.status_code}: {body}")
    try:
        data = r.json()
    except ValueError as e:
        _warn("HAL invalid JSON", url=r.url)
        raise HalApiError("HAL returned invalid JSON") from e

    docs = (data.get("response") or {}).get("docs") if isinstance(data, dict) else None
    if not isinstance(docs, list):
        raise HalApiError("HAL response has no response.docs list")
    num_found = (data.get("response") or {}).get("numFound")
    if isinstance(num_found, int) and num_found > len(docs):
        _warn("HAL returned a truncated result set", num_found=num_found, returned=len(docs))
    return docs


def fetch_hal_documents(
    author_id: str,
    *,
    session: Optional[requests.Session] = None,
    api_url: Optional[str] = None,
    timeout: Optional[int] = None,
    rows: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Request the HAL search API for every publication of `author_id` (the
    author's chosen idHAL, e.g. `remy-chaput`) and return the raw documents.

    A session passed in is left open for the caller; otherwise a private one
    is opened and closed around the request.
    """
    if not author_id or not author_id.strip():
        raise ValueError("author_id is required")
    url = api_url or hal_api_url()
    params = build_search_params(author_id.strip(), rows if rows is not None else RUNTIME_CONFIG.hal.rows)
    use_timeout = timeout or RUNTIME_CONFIG.hal.timeout_secs
    if session is not None:
        return _search(session, url, params, use_timeout, author_id)
    with requests.Session() as sess:
        return _search(sess, url, params, use_timeout, author_id)


def get_publications_from_author_id(
    author_id: str,
    *,
    session: Optional[requests.Session] = None,
    api_url: Optional[str] = None,
    timeout: Optional[int] = None,
    rows: Optional[int] = None,
) -> List[TargetRecord]:
    docs = fetch_hal_documents(author_id, session=session, api_url=api_url, timeout=timeout, rows=rows)
    publications = [TargetRecord.from_hal_doc(doc) for doc in docs if isinstance(doc, dict)]
    _info("Fetched HAL publications", author_id=author_id, count=len(publications))
    return publications
