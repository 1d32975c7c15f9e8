"""
Cloudinary Adapter

Implements MediaStore on top of Cloudinary's signed REST upload API.
"""
import os
import time
import hashlib
import logging
import httpx
from typing import Optional

from .media_base import MediaAsset, MediaStore, discard_local_file
from ..config import Settings, settings

logger = logging.getLogger(__name__)


class CloudinaryMediaStore(MediaStore):
    """Cloudinary media host"""

    def __init__(self, config: Settings = settings):
        self.cloud_name = config.cloudinary_cloud_name
        self.api_key = config.cloudinary_api_key
        self.api_secret = config.cloudinary_api_secret
        self.api_url = config.cloudinary_api_url.rstrip("/")
        self.timeout = config.media_timeout_sec

    @property
    def name(self) -> str:
        return "Cloudinary"

    def is_available(self) -> bool:
        """Check if credentials are configured"""
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def sign(self, params: dict) -> str:
        """
        Cloudinary request signature: SHA-1 of the sorted "key=value" pairs
        joined by "&", immediately followed by the API secret.
        """
        to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] not in (None, ""))
        return hashlib.sha1(f"{to_sign}{self.api_secret}".encode("utf-8")).hexdigest()

    def _signed_form(self, params: dict) -> dict:
        form = {k: str(v) for k, v in params.items()}
        form["api_key"] = self.api_key
        form["signature"] = self.sign(params)
        return form

    async def upload(self, local_path: Optional[str]) -> Optional[MediaAsset]:
        if not local_path:
            return None
        try:
            if not self.is_available():
                raise RuntimeError(f"{self.name}: credentials not configured")

            url = f"{self.api_url}/{self.cloud_name}/auto/upload"
            data = self._signed_form({"timestamp": int(time.time())})
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                with open(local_path, "rb") as f:
                    files = {"file": (os.path.basename(local_path), f)}
                    resp = await client.post(url, data=data, files=files)
                resp.raise_for_status()
                result = resp.json()

            asset_url = result.get("secure_url") or result.get("url")
            if not asset_url:
                logger.error("[media] %s upload returned no url: %s", self.name, result)
                return None
            logger.info("[media] uploaded %s -> %s", local_path, asset_url)
            return MediaAsset(
                url=asset_url,
                public_id=result.get("public_id", ""),
                resource_type=result.get("resource_type"),
                bytes=result.get("bytes"),
            )
        except Exception as e:
            logger.error("[media] %s upload failed for %s: %s", self.name, local_path, e)
            return None
        finally:
            discard_local_file(local_path)

    async def delete(self, public_id: str) -> Optional[dict]:
        try:
            if not self.is_available():
                raise RuntimeError(f"{self.name}: credentials not configured")

            url = f"{self.api_url}/{self.cloud_name}/image/destroy"
            data = self._signed_form({"public_id": public_id, "timestamp": int(time.time())})
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, data=data)
                resp.raise_for_status()
                result = resp.json()
            logger.info("[media] deleted %s: %s", public_id, result)
            return result
        except Exception as e:
            logger.error("[media] %s delete failed for %s: %s", self.name, public_id, e)
            return None


# Global singleton
cloudinary_media_store = CloudinaryMediaStore()
