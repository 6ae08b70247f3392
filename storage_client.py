"""Thin client for an IPFS HTTP gateway."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

from app_settings import DEFAULT_IPFS_GATEWAY, AppSettings
from services.errors import StorageFetchFailure


logger = logging.getLogger(__name__)


def _normalize_cid(content_id: str) -> str:
    cid = (content_id or "").strip()
    if cid.startswith("ipfs://"):
        cid = cid[len("ipfs://"):]
    if cid.startswith("ipfs/"):
        cid = cid[len("ipfs/"):]
    return cid


@dataclass
class ContentStorageClient:
    """Fetch raw payload bytes from a content-addressed gateway."""

    base_url: str = DEFAULT_IPFS_GATEWAY
    timeout: float = 30

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "ContentStorageClient":
        return cls(settings.ipfs_gateway, timeout=settings.request_timeout)

    def url_for(self, content_id: str) -> str:
        return f"{self.base_url}/ipfs/{_normalize_cid(content_id)}"

    def fetch(self, content_id: str) -> bytes:
        """Return the bytes stored under ``content_id``."""

        if not _normalize_cid(content_id):
            raise StorageFetchFailure(content_id, detail="empty content identifier")
        url = self.url_for(content_id)
        try:
            response = requests.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("Gateway request for %s failed: %s", content_id, exc)
            raise StorageFetchFailure(content_id, detail=str(exc)) from exc
        if not response.ok:
            logger.warning("Gateway returned %s for %s", response.status_code, content_id)
            raise StorageFetchFailure(content_id, status=response.status_code)
        return response.content


__all__ = ["ContentStorageClient"]
