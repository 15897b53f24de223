from .blob_store import (
    BlobStore, BlobStoreError, LocalBlobStore, S3BlobStore, StoredBlob,
    build_blob_store, get_blob_store, put_pdf, put_signature,
)

__all__ = [
    'BlobStore', 'BlobStoreError', 'LocalBlobStore', 'S3BlobStore', 'StoredBlob',
    'build_blob_store', 'get_blob_store', 'put_pdf', 'put_signature',
]
