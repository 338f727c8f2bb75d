import logging

from pydantic import BaseModel, ValidationError

from taskboard.models.enums import Role
from taskboard.storage.blobs import BlobStore

logger = logging.getLogger(__name__)

class CachedIdentity(BaseModel):
    id: str
    email: str
    name: str
    role: Role

class IdentityCache:
    """Last signed-in identity, kept as one JSON blob next to the task list."""

    def __init__(self, blobs: BlobStore, key: str = "task-manager-user") -> None:
        self._blobs = blobs
        self._key = key

    def remember(self, identity: CachedIdentity) -> None:
        self._blobs.set(self._key, identity.model_dump_json())

    def recall(self) -> CachedIdentity | None:
        raw = self._blobs.get(self._key)
        if raw is None:
            return None
        try:
            return CachedIdentity.model_validate_json(raw)
        except ValidationError:
            logger.warning("Ignoring malformed cached identity key=%s", self._key)
            return None

    def forget(self) -> None:
        self._blobs.delete(self._key)
