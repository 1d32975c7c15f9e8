"""
Media Store Abstract Interface

Provides a unified interface for remote media hosts (Cloudinary / others).
Implementations never raise to the caller: a failed upload or delete returns None.
"""
import os
import logging
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from fastapi import UploadFile

logger = logging.getLogger(__name__)


@dataclass
class MediaAsset:
    """Result of a successful upload"""
    url: str
    public_id: str
    resource_type: Optional[str] = None
    bytes: Optional[int] = None


class MediaStore(ABC):
    """Media Store Abstract Base Class"""

    @abstractmethod
    async def upload(self, local_path: Optional[str]) -> Optional[MediaAsset]:
        """
        Upload a local file and return its public location.

        The local file is removed after the attempt, whether it succeeded or not.
        Returns None if there is nothing to upload or the upload failed.
        """

    @abstractmethod
    async def delete(self, public_id: str) -> Optional[dict]:
        """Delete a previously stored asset. Returns the host's reply, or None on failure."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the store is configured"""

    @property
    @abstractmethod
    def name(self) -> str:
        """Store name (e.g., "Cloudinary")"""


def derive_public_id(url: str) -> str:
    """
    Storage identifier of an asset from its public URL: the basename without extension.

    >>> derive_public_id("http://res.cloudinary.com/demo/image/upload/v1/abc123.png")
    'abc123'
    """
    path = urlparse(url or "").path or (url or "")
    return Path(path).stem


def discard_local_file(local_path: Optional[str]) -> None:
    """Remove a buffered upload; a file that is already gone is fine."""
    if not local_path:
        return
    try:
        os.remove(local_path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("[media] could not remove temp file %s: %s", local_path, e)


async def stash_upload(upload: Optional[UploadFile], tmp_dir: Optional[str] = None) -> Optional[str]:
    """
    Buffer a multipart upload to a temp file and return its path.
    Returns None when no file was sent.
    """
    if upload is None or not upload.filename:
        return None
    suffix = Path(upload.filename).suffix
    tmp = tempfile.NamedTemporaryFile(delete=False, suffix=suffix, dir=tmp_dir)
    try:
        tmp.write(await upload.read())
        tmp.flush()
    finally:
        tmp.close()
        await upload.close()
    return tmp.name
