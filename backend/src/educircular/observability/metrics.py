"""Prometheus metrics for EduCircular.

Counts submissions, review outcomes and blob store operations.
"""

from prometheus_client import Counter, Histogram

submissions_total = Counter(
    "educircular_submissions_total",
    "Total circulars submitted for review",
    ["submitter"]  # submitter: guest|user
)

reviews_total = Counter(
    "educircular_reviews_total",
    "Total review decisions recorded",
    ["outcome"]  # outcome: approved|rejected|conflict
)

direct_uploads_total = Counter(
    "educircular_direct_uploads_total",
    "Total circulars uploaded directly by administrators"
)

blob_operations_total = Counter(
    "educircular_blob_operations_total",
    "Blob store operations",
    ["operation", "status"]  # operation: store|retrieve|delete, status: success|error|not_found
)

upload_size_bytes = Histogram(
    "educircular_upload_size_bytes",
    "Size of uploaded circular PDFs in bytes",
    buckets=[10_000, 100_000, 500_000, 1_000_000, 5_000_000, 10_000_000, 50_000_000]
)
