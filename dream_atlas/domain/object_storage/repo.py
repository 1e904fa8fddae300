"""Port interface for the application-owned object store."""
from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from uuid import UUID


class ObjectStorageRepository(ABC):

    @abstractmethod
    async def upload_bytes(self, key: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``key`` and return its public address."""

    @abstractmethod
    def is_owned_url(self, url: str) -> bool:
        """True when ``url`` points into our own storage (trusted media)."""

    @staticmethod
    def new_key(owner_id: UUID, ext: str, folder: str | None = None) -> str:
        """Fresh, owner-namespaced object key: ``<owner>/[folder/]<uuid>.<ext>``."""
        name = f"{uuid.uuid4().hex}.{ext.lstrip('.')}"
        if folder:
            return f"{owner_id}/{folder}/{name}"
        return f"{owner_id}/{name}"
