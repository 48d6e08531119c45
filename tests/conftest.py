# tests/conftest.py
import httpx
import pytest

from gbooks.api_clients.books import GoogleBooksClient

API_URL = "https://books.test/books/v1/volumes"


class FakeProvider:
    """
    Stands in for the Google Books API behind httpx.MockTransport.
    Records every request; fail_on lists 1-based call numbers answered with `fail_status`.
    """

    def __init__(self, fail_on=(), fail_status=500):
        self.requests = []
        self.fail_on = set(fail_on)
        self.fail_status = fail_status

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self.requests) in self.fail_on:
            return httpx.Response(self.fail_status, json={"error": {"code": self.fail_status}})

        params = request.url.params
        if "q" not in params:
            # Volume lookup: /volumes/<id>
            volume_id = request.url.path.rsplit("/", 1)[-1]
            return httpx.Response(200, json={
                "kind": "books#volume",
                "id": volume_id,
                "volumeInfo": {"title": f"Volume {volume_id}", "authors": ["Someone"]},
            })
        return httpx.Response(200, json={
            "kind": "books#volumes",
            "totalItems": 120,
            "startIndex": int(params.get("startIndex", 0)),
            "items": [{
                "id": f"vol-{params.get('startIndex')}",
                "volumeInfo": {
                    "title": "Dune",
                    "authors": ["Frank Herbert"],
                    "publishedDate": "1965",
                },
            }],
        })

    @property
    def start_indexes(self):
        return [int(r.url.params["startIndex"]) for r in self.requests]


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def make_client():
    """Factory building a GoogleBooksClient wired to a FakeProvider."""
    def _make(provider, **overrides):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(provider))
        overrides.setdefault("apiUrl", API_URL)
        return GoogleBooksClient(http_client=http_client, **overrides)
    return _make
