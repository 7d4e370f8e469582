"""Object storage adapters for circular PDFs."""

from .s3_blob_store import S3BlobStore
from .storage_config import StorageConfig, load_storage_config, validate_storage_config


def build_blob_store(config: StorageConfig) -> S3BlobStore:
    """Construct the process-wide blob store from configuration."""
    validate_storage_config(config)
    return S3BlobStore(
        endpoint_url=config.endpoint_url,
        access_key=config.access_key,
        secret_key=config.secret_key,
        bucket_name=config.bucket_name,
        region=config.region,
        create_bucket=config.create_bucket,
    )


__all__ = [
    "S3BlobStore",
    "StorageConfig",
    "load_storage_config",
    "validate_storage_config",
    "build_blob_store",
]
