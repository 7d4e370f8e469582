from .blob_store_port import BlobStorePort, BlobStream, StoredBlob

__all__ = ["BlobStorePort", "BlobStream", "StoredBlob"]
