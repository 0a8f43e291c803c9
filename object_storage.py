import logging
from pathlib import Path
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from pipeline_errors import InvalidArgument, UploadFailed


logger = logging.getLogger(__name__)

TEMPLATE_VARIANTS = ("full", "thumb")
LONG_CACHE_CONTROL = "public, max-age=31536000"


def template_object_key(category: str, subcategory: str, template_id: str, variant: str) -> str:
    """Storage key for one rendition of a template: templates/{category}/{subcategory}/{id}_{variant}.png"""
    if variant not in TEMPLATE_VARIANTS:
        raise InvalidArgument(f"Unknown template variant '{variant}'. Expected one of: {', '.join(TEMPLATE_VARIANTS)}")
    return f"templates/{category}/{subcategory}/{template_id}_{variant}.png"


class S3TemplateStorage:
    """
    S3-backed template storage.

    Writes are plain overwrites keyed by object key, so re-uploading the same
    template id replaces the previous rendition.
    """

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        storage_domain: str = "s3.amazonaws.com",
        client: Optional[object] = None
    ):
        if not bucket:
            raise InvalidArgument("S3 bucket name is required for template storage")
        self.bucket = bucket
        self.storage_domain = storage_domain
        self.client = client if client is not None else boto3.client("s3", region_name=region)

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket}.{self.storage_domain}/{key}"

    def put(
        self,
        key: str,
        data: bytes,
        content_type: str = "image/png",
        cache_control: str = LONG_CACHE_CONTROL
    ) -> str:
        """
        Upload bytes and return the public URL.

        Raises:
            UploadFailed: If S3 rejects the write or the transport fails
        """
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                CacheControl=cache_control,
            )
        except (ClientError, BotoCoreError) as e:
            raise UploadFailed(f"S3 upload failed for {key}: {e}", key=key) from e

        logger.info(f"[STORAGE] Uploaded s3://{self.bucket}/{key} ({len(data)} bytes)")
        return self.public_url(key)


class LocalTemplateStorage:
    """Filesystem storage for offline runs and placeholder seeding without S3."""

    def __init__(self, root: str, base_url: str = ""):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def public_url(self, key: str) -> str:
        if self.base_url:
            return f"{self.base_url}/{key}"
        return (self.root / key).resolve().as_uri()

    def put(
        self,
        key: str,
        data: bytes,
        content_type: str = "image/png",
        cache_control: str = LONG_CACHE_CONTROL
    ) -> str:
        path = self.root / key
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise UploadFailed(f"Local write failed for {key}: {e}", key=key) from e
        return self.public_url(key)
