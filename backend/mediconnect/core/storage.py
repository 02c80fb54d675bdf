import asyncio
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import aiofiles
import aiohttp
from fastapi import UploadFile
from loguru import logger

from mediconnect.config import settings
from mediconnect.core import errors
from mediconnect.utils.prometheus_metrics import metrics

class ObjectStore(ABC):
    """Durable storage for rendered documents"""

    provider = "unknown"

    @abstractmethod
    async def put(self, key: str, content: bytes, content_type: str) -> str:
        """Store ``content`` under ``key``, overwriting, and return a public URL"""

class LocalStorageClient(ObjectStore):
    """Writes objects to a directory the API serves under ``/storage``"""

    provider = "local"

    def __init__(self, storage_path: str, public_url: str):
        self.storage_path = Path(storage_path)
        self.storage_path.mkdir(parents=True, exist_ok=True)
        self.public_url = public_url.rstrip("/")

    async def put(self, key: str, content: bytes, content_type: str) -> str:
        file_path = self.storage_path / Path(key).name
        try:
            async with aiofiles.open(file_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error(f"Failed to write {key} to local storage: {e}")
            metrics.record_storage_upload(self.provider, success=False)
            raise errors.UpstreamFailure(f"Failed to store {key}")

        metrics.record_storage_upload(self.provider, success=True)
        logger.info(f"Stored {key} ({len(content)} bytes) in local storage")
        return f"{self.public_url}/{file_path.name}"

class SupabaseStorageClient(ObjectStore):
    """Uploads objects to a public Supabase Storage bucket"""

    provider = "supabase"

    def __init__(self, base_url: str, service_key: str, bucket: str, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self.bucket = bucket
        self.timeout = timeout

    def public_url_for(self, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{key}"

    async def put(self, key: str, content: bytes, content_type: str) -> str:
        headers = {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
            "Content-Type": content_type,
            "x-upsert": "true",
        }
        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{key}"

        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.post(url, data=content, headers=headers) as response:
                    status = response.status
                    body = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Supabase upload of {key} failed: {e}")
            metrics.record_storage_upload(self.provider, success=False)
            raise errors.UpstreamFailure(f"Failed to upload {key}: {e}")

        if status >= 400:
            logger.error(f"Supabase rejected upload of {key}: {status} {body}")
            metrics.record_storage_upload(self.provider, success=False)
            raise errors.UpstreamFailure(f"Failed to upload {key}: storage returned {status}")

        metrics.record_storage_upload(self.provider, success=True)
        logger.info(f"Uploaded {key} to bucket {self.bucket}")
        return self.public_url_for(key)

class StorageClientFactory:
    @staticmethod
    def create_client() -> ObjectStore:
        provider = settings.storage_provider.lower()

        if provider == "supabase":
            if settings.supabase_url and settings.supabase_service_key:
                logger.info("Using Supabase storage client")
                return SupabaseStorageClient(
                    base_url=settings.supabase_url,
                    service_key=settings.supabase_service_key,
                    bucket=settings.supabase_bucket,
                    timeout=settings.storage_timeout_seconds,
                )
            else:
                logger.warning("Supabase credentials not configured, falling back to local storage")

        logger.info("Using local storage client")
        return LocalStorageClient(
            settings.storage_path,
            public_url=f"{settings.public_base_url.rstrip('/')}/storage",
        )

def validate_image_type(filename: Optional[str]) -> bool:
    """Validate if file type is an allowed image"""
    file_extension = Path(filename or "").suffix.lower().lstrip('.')
    return file_extension in settings.allowed_image_types_list

def validate_file_size(file_size: int) -> bool:
    """Validate if file size is within limits"""
    max_size_bytes = settings.max_upload_size_mb * 1024 * 1024
    return file_size <= max_size_bytes

async def save_profile_picture(upload: UploadFile) -> str:
    """Persist an uploaded profile picture and return its served path"""
    if not validate_image_type(upload.filename):
        raise errors.ValidationError(f"File type not allowed: {upload.filename}")

    content = await upload.read()
    if not validate_file_size(len(content)):
        raise errors.ValidationError(
            f"File too large: {upload.filename} (max {settings.max_upload_size_mb}MB)"
        )

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    stored_filename = f"{uuid.uuid4()}{Path(upload.filename).suffix.lower()}"

    async with aiofiles.open(upload_dir / stored_filename, 'wb') as f:
        await f.write(content)

    logger.info(f"Profile picture saved: {stored_filename}")
    return f"/uploads/{stored_filename}"

# Global storage client instance
storage_client = StorageClientFactory.create_client()
