"""Metadata upload adapter.

The metadata service stores notes and an optional attachment in a
content-addressed store and answers with the object's hash and, for image
attachments, a gateway URL.
"""
from __future__ import annotations

import logging
from typing import Optional

import httpx

from .config import NotaSettings
from .exceptions import NotaValidationError
from .models import MetadataURIs
from .ports import MetadataUploader

logger = logging.getLogger(__name__)


class HttpMetadataUploader(MetadataUploader):
    """Uploads metadata as multipart form data."""

    DEFAULT_TIMEOUT = 60.0

    def __init__(
        self,
        url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        if not url:
            raise NotaValidationError("Metadata upload URL is not configured", field="metadata_url")
        self._url = url
        self._client = client
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: NotaSettings, **kwargs) -> "HttpMetadataUploader":
        return cls(settings.metadata_url, timeout=settings.http_timeout_seconds, **kwargs)

    async def upload(
        self,
        notes: Optional[str] = None,
        tags: Optional[str] = None,
        file: Optional[bytes] = None,
        file_name: str = "attachment",
    ) -> MetadataURIs:
        data = {}
        if notes:
            data["notes"] = notes
        if tags:
            data["tags"] = tags
        files = {"file": (file_name, file)} if file is not None else None

        if self._client is not None:
            response = await self._client.post(self._url, data=data, files=files)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._url, data=data, files=files)
        response.raise_for_status()

        body = response.json()
        uris = MetadataURIs(
            external_uri=body.get("key") or body.get("ipfsHash") or "",
            image_uri=body.get("imageUrl") or "",
        )
        logger.info(f"Uploaded nota metadata to {uris.external_uri}")
        return uris
