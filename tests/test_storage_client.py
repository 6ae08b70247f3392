import pytest
import requests

from services.errors import StorageFetchFailure
from storage_client import ContentStorageClient


class DummyResponse:
    def __init__(self, status_code: int, content: bytes = b"") -> None:
        self.status_code = status_code
        self.content = content

    @property
    def ok(self) -> bool:
        return self.status_code < 400


def test_fetch_requests_gateway_path(monkeypatch):
    captured: dict[str, object] = {}

    def fake_get(url, *, timeout=None):
        captured.update({"url": url, "timeout": timeout})
        return DummyResponse(200, b"U2FsdGVkX1")

    monkeypatch.setattr(requests, "get", fake_get)

    client = ContentStorageClient("https://gateway.example/", timeout=7)
    assert client.fetch("ipfs://bafyabc") == b"U2FsdGVkX1"
    assert captured == {"url": "https://gateway.example/ipfs/bafyabc", "timeout": 7}


def test_fetch_raises_on_error_status(monkeypatch):
    monkeypatch.setattr(requests, "get", lambda url, *, timeout=None: DummyResponse(504))

    with pytest.raises(StorageFetchFailure) as excinfo:
        ContentStorageClient("https://gateway.example").fetch("bafyabc")
    assert excinfo.value.status == 504


def test_fetch_wraps_transport_errors(monkeypatch):
    def fake_get(url, *, timeout=None):
        raise requests.Timeout("slow gateway")

    monkeypatch.setattr(requests, "get", fake_get)

    with pytest.raises(StorageFetchFailure, match="slow gateway"):
        ContentStorageClient().fetch("bafyabc")


def test_fetch_rejects_empty_identifier():
    with pytest.raises(StorageFetchFailure):
        ContentStorageClient().fetch("  ")
