import os
import unittest
from unittest.mock import patch

import requests

from hal_sync.hal_api import (
    HAL_FIELDS,
    HalApiError,
    build_search_params,
    get_publications_from_author_id,
)

HAL_DOC = {
    "docid": "3000111",
    "halId_s": "hal-000111v2",
    "doiId_s": "10.1000/fast",
    "uri_s": "https://hal.science/hal-000111v2",
    "title_s": ["Fast Graphs", "Graphes rapides"],
    "authFullName_s": ["A Dupont", "B Martin"],
    "publicationDate_s": "2021-03-01",
    "abstract_s": ["We make graphs fast."],
    "keyword_s": ["graphs"],
    "docType_s": "COMM",
    "conferenceTitle_s": "GraphConf",
    "label_bibtex": "@inproceedings{dupont2021}",
}


class _FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str = "") -> None:
        self.status_code = status_code
        self.ok = 200 <= status_code < 400
        self._payload = payload
        self.text = text
        self.url = "https://api.example.org/search/"

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class _FakeSession:
    def __init__(self, response=None, exc: Exception = None) -> None:
        self.response = response
        self.exc = exc
        self.calls = []
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
        return False

    def close(self) -> None:
        self.closed = True

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.exc is not None:
            raise self.exc
        return self.response


class HalApiTests(unittest.TestCase):
    def test_search_params(self) -> None:
        params = build_search_params("remy-chaput", rows=50)
        self.assertEqual(params["q"], "authIdHal_s:remy-chaput")
        self.assertEqual(params["wt"], "json")
        self.assertEqual(params["fl"].split(","), HAL_FIELDS)
        self.assertEqual(params["rows"], "50")

    def test_maps_documents_to_targets(self) -> None:
        session = _FakeSession(_FakeResponse(payload={"response": {"numFound": 1, "docs": [HAL_DOC]}}))

        pubs = get_publications_from_author_id("remy-chaput", session=session, api_url="https://api.example.org/search/")

        self.assertEqual(len(session.calls), 1)
        url, kwargs = session.calls[0]
        self.assertEqual(url, "https://api.example.org/search/")
        self.assertEqual(kwargs["params"]["q"], "authIdHal_s:remy-chaput")
        self.assertIn("timeout", kwargs)

        (pub,) = pubs
        self.assertEqual(pub.identifier, "hal-000111v2")
        self.assertEqual(pub.alternate_identifier, "10.1000/fast")
        self.assertEqual(pub.titles, ("Fast Graphs", "Graphes rapides"))
        self.assertEqual(pub.authors, ("A Dupont", "B Martin"))
        self.assertEqual(pub.publication_date, "2021-03-01")
        self.assertEqual(pub.conference_title, "GraphConf")

    def test_missing_fields_are_absent(self) -> None:
        doc = {"halId_s": "hal-1", "title_s": "Only title", "doiId_s": "", "authFullName_s": []}
        session = _FakeSession(_FakeResponse(payload={"response": {"docs": [doc]}}))

        (pub,) = get_publications_from_author_id("someone", session=session)

        self.assertEqual(pub.titles, ("Only title",))
        self.assertIsNone(pub.alternate_identifier)
        self.assertIsNone(pub.authors)
        self.assertIsNone(pub.publication_date)

    def test_http_error_raises_with_body(self) -> None:
        session = _FakeSession(_FakeResponse(status_code=400, text="undefined field"))

        with self.assertRaises(HalApiError) as ctx:
            get_publications_from_author_id("someone", session=session)
        self.assertIn("undefined field", str(ctx.exception))

    def test_network_error_is_wrapped(self) -> None:
        session = _FakeSession(exc=requests.ConnectionError("boom"))

        with self.assertRaises(HalApiError):
            get_publications_from_author_id("someone", session=session)

    def test_unexpected_payload(self) -> None:
        session = _FakeSession(_FakeResponse(payload={"error": "nope"}))

        with self.assertRaises(HalApiError):
            get_publications_from_author_id("someone", session=session)

    def test_author_id_required(self) -> None:
        with self.assertRaises(ValueError):
            get_publications_from_author_id("  ", session=_FakeSession())

    def test_api_url_is_read_from_environment_at_call_time(self) -> None:
        session = _FakeSession(_FakeResponse(payload={"response": {"docs": []}}))

        with patch.dict(os.environ, {"HAL_API_URL": "http://example.invalid/search/"}):
            get_publications_from_author_id("someone", session=session)

        self.assertEqual(session.calls[0][0], "http://example.invalid/search/")

    def test_api_url_falls_back_to_config(self) -> None:
        session = _FakeSession(_FakeResponse(payload={"response": {"docs": []}}))

        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("HAL_API_URL", None)
            with patch("hal_sync.hal_api.RUNTIME_CONFIG") as cfg:
                cfg.hal.api_url = "https://config.example.org/search/"
                cfg.hal.rows = 10
                cfg.hal.timeout_secs = 5
                get_publications_from_author_id("someone", session=session)

        url, kwargs = session.calls[0]
        self.assertEqual(url, "https://config.example.org/search/")
        self.assertEqual(kwargs["timeout"], 5)

    def test_private_session_is_closed(self) -> None:
        session = _FakeSession(_FakeResponse(payload={"response": {"docs": [HAL_DOC]}}))

        with patch("hal_sync.hal_api.requests.Session", return_value=session):
            pubs = get_publications_from_author_id("someone")

        self.assertEqual(len(pubs), 1)
        self.assertTrue(session.closed)

    def test_private_session_is_closed_on_error(self) -> None:
        session = _FakeSession(_FakeResponse(status_code=500, text="down"))

        with patch("hal_sync.hal_api.requests.Session", return_value=session):
            with self.assertRaises(HalApiError):
                get_publications_from_author_id("someone")

        self.assertTrue(session.closed)

    def test_caller_session_is_left_open(self) -> None:
        session = _FakeSession(_FakeResponse(payload={"response": {"docs": []}}))

        get_publications_from_author_id("someone", session=session)

        self.assertFalse(session.closed)


if __name__ == "__main__":
    unittest.main()
