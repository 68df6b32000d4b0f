"""MediaStorage protocol: external image host used for avatar / cover uploads.

Registration only needs upload and delete: uploaded media is deleted again
when the account record cannot be created.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class MediaUpload:
    filename: str
    content: bytes
    content_type: str


@dataclass(frozen=True)
class StoredMedia:
    url: str
    public_id: str


class MediaStorage(Protocol):
    async def upload(self, media: MediaUpload) -> StoredMedia: ...

    async def delete(self, public_id: str) -> None: ...
