"""Storage configuration for S3-compatible object storage.

Supports both MinIO (development) and AWS S3 (production) with the same
interface. Values come from the application Settings.
"""

from dataclasses import dataclass
from typing import Optional

from ...config import Settings, get_settings


@dataclass
class StorageConfig:
    """Configuration for S3-compatible object storage.

    Attributes:
        endpoint_url: S3 endpoint URL (e.g., 'http://localhost:9000' for MinIO,
                      None for AWS S3 which uses default regional endpoints)
        access_key: S3 access key ID
        secret_key: S3 secret access key
        bucket_name: S3 bucket name for storing circular PDFs
        region: AWS region (default: 'us-east-1')
        create_bucket: Create the bucket on startup if it is missing
    """
    endpoint_url: Optional[str]
    access_key: str
    secret_key: str
    bucket_name: str
    region: str = "us-east-1"
    create_bucket: bool = False


def load_storage_config(settings: Optional[Settings] = None) -> StorageConfig:
    """Build storage configuration from settings.

    An empty S3_ENDPOINT_URL means AWS S3 with default regional endpoints.
    """
    settings = settings or get_settings()
    return StorageConfig(
        endpoint_url=settings.S3_ENDPOINT_URL or None,
        access_key=settings.S3_ACCESS_KEY_ID,
        secret_key=settings.S3_SECRET_ACCESS_KEY,
        bucket_name=settings.S3_BUCKET_NAME,
        region=settings.S3_REGION,
        create_bucket=settings.S3_CREATE_BUCKET,
    )


def validate_storage_config(config: StorageConfig) -> None:
    """Validate storage configuration.

    Raises:
        ValueError: If configuration is invalid
    """
    if not config.access_key:
        raise ValueError("Storage access_key is required")

    if not config.secret_key:
        raise ValueError("Storage secret_key is required")

    if not config.bucket_name:
        raise ValueError("Storage bucket_name is required")

    if config.endpoint_url:
        if not config.endpoint_url.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid endpoint_url: {config.endpoint_url}. "
                "Must start with http:// or https://"
            )
    elif not config.region:
        raise ValueError("AWS region is required when using S3 (S3_ENDPOINT_URL not set)")
