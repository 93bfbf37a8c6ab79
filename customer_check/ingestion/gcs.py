from __future__ import annotations

from google.cloud import storage


def gs_uri(bucket: str, name: str) -> str:
    return f"gs://{bucket}/{name}"


def parse_gs_uri(uri: str) -> tuple[str, str]:
    """Split ``gs://bucket/name`` into ``(bucket, name)``."""
    if not uri.startswith("gs://"):
        raise ValueError(f"not a gs:// URI: {uri}")
    bucket, _, name = uri[len("gs://") :].partition("/")
    if not bucket or not name:
        raise ValueError(f"gs:// URI must name a bucket and an object: {uri}")
    return bucket, name


def download_to_file(client: storage.Client, bucket: str, name: str, path: str) -> str | None:
    """Download one object to ``path``; returns the object's content type."""
    b = client.bucket(bucket)
    blob = b.get_blob(name)
    if blob is None:
        raise FileNotFoundError(gs_uri(bucket, name))
    blob.download_to_filename(path)
    return blob.content_type
