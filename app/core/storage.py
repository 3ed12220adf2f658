import os
import uuid
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import UploadFile
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from app.core.config import Settings
from app.core.exceptions import AppError, ValidationFailed

logger = logging.getLogger(__name__)

class StorageConfig(BaseModel):
    """Everything the media storage needs, built once at startup"""
    bucket: str
    endpoint: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    public_url: str = ""
    base_url: str = ""
    api_prefix: str = "/api/v1"
    local_directory: str = "uploads"
    max_upload_size: int = 5 * 1024 * 1024

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageConfig":
        return cls(
            bucket=settings.R2_BUCKET_NAME,
            endpoint=settings.R2_ENDPOINT,
            access_key_id=settings.R2_ACCESS_KEY_ID,
            secret_access_key=settings.R2_SECRET_ACCESS_KEY,
            public_url=settings.R2_PUBLIC_URL,
            base_url=settings.BASE_URL,
            api_prefix=settings.API_V1_STR,
            local_directory=settings.UPLOAD_DIRECTORY,
            max_upload_size=settings.MAX_UPLOAD_SIZE,
        )

    @property
    def remote_enabled(self) -> bool:
        return all([self.endpoint, self.access_key_id, self.secret_access_key])

class MediaStorage:
    """
    Stores uploaded post images in Cloudflare R2 (S3 API) and returns a URL.
    Without R2 credentials files are written under the local upload
    directory, which the app serves at {api_prefix}/static.
    """

    def __init__(self, config: StorageConfig):
        self.config = config
        self.client = None

        if config.remote_enabled:
            logger.info(f"Creating S3 client for R2 bucket '{config.bucket}' at {config.endpoint}")
            self.client = boto3.client(
                "s3",
                endpoint_url=config.endpoint,
                aws_access_key_id=config.access_key_id,
                aws_secret_access_key=config.secret_access_key,
            )
        else:
            logger.warning("R2 storage not configured, uploads will be stored locally")

    def _validate(self, file: UploadFile, content: bytes) -> None:
        if not (file.content_type or "").startswith("image/"):
            raise ValidationFailed.for_field("image", "Only image files are allowed")
        if len(content) > self.config.max_upload_size:
            limit_mb = self.config.max_upload_size // (1024 * 1024)
            raise ValidationFailed.for_field("image", f"Image must not exceed {limit_mb}MB")

    def _key_for(self, file: UploadFile, prefix: str) -> str:
        file_extension = os.path.splitext(file.filename or "")[1].lower()
        return f"{prefix}/{uuid.uuid4().hex}{file_extension}"

    async def upload_file(self, file: UploadFile, prefix: str = "posts") -> str:
        """Upload an image and return its public URL"""
        content = await file.read()
        self._validate(file, content)
        key = self._key_for(file, prefix)

        if not self.client:
            return await run_in_threadpool(self._save_locally, key, content)

        logger.info(f"Uploading '{file.filename}' to R2 bucket '{self.config.bucket}' with key '{key}'")
        try:
            await run_in_threadpool(
                self.client.put_object,
                Bucket=self.config.bucket,
                Key=key,
                Body=content,
                ContentType=file.content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to upload to R2: {e}")
            raise AppError("Failed to upload media")

        if self.config.public_url:
            return f"{self.config.public_url}/{key}"
        # Path-style bucket URL when no public domain is configured
        return f"{self.config.endpoint}/{self.config.bucket}/{key}"

    def _save_locally(self, key: str, content: bytes) -> str:
        local_path = os.path.join(self.config.local_directory, key)
        os.makedirs(os.path.dirname(local_path), exist_ok=True)
        try:
            with open(local_path, "wb") as out_file:
                out_file.write(content)
        except OSError as e:
            logger.error(f"Failed to save file locally: {e}")
            raise AppError("Failed to upload media")
        logger.info(f"Saved file locally at {local_path}")
        return f"{self.config.base_url}{self.config.api_prefix}/static/{key}"
