"""Materialize a path or URL as a local file the extractors can read."""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import os
import posixpath
import tempfile
from urllib.parse import unquote, urlsplit

import httpx
from google.cloud import storage

from customer_check.config import DEFAULT_DOWNLOAD_TIMEOUT_SECONDS
from customer_check.errors import SourceResolutionError
from customer_check.ingestion.gcs import download_to_file, parse_gs_uri
from customer_check.ingestion.types import ResolvedSource

logger = logging.getLogger(__name__)

TEMP_PREFIX = "xfer-"
_DEFAULT_FILENAME = "downloaded"


def normalize_google_drive(url: str) -> str:
    """Rewrite a Drive share link (``/file/d/<id>/view``) to its direct-download form."""
    u = urlsplit(url)
    if u.hostname != "drive.google.com":
        return url
    parts = u.path.strip("/").split("/")
    for i in range(len(parts) - 2):
        if parts[i] == "file" and parts[i + 1] == "d" and parts[i + 2]:
            return f"https://drive.google.com/uc?id={parts[i + 2]}&export=download"
    return url


def filename_from_content_disposition(header: str | None) -> str:
    if not header:
        return ""
    for part in header.split(";"):
        part = part.strip()
        if part.lower().startswith("filename="):
            return part[len("filename=") :].strip("\"'")
    return ""


def _filename_from_url(url: str) -> str:
    path = unquote(urlsplit(url).path)
    return posixpath.basename(path.rstrip("/")) if path.strip("/") else ""


def _discard(path: str) -> None:
    if path and os.path.exists(path):
        os.unlink(path)


class SourceResolver:
    """Resolve local paths, ``http(s)://`` URLs and ``gs://`` objects.

    Downloads land in task-local temp files (``xfer-*``); the returned
    ``ResolvedSource.downloaded`` flag tells the caller it owns that file.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient | None = None,
        storage_client: storage.Client | None = None,
        timeout_s: float = DEFAULT_DOWNLOAD_TIMEOUT_SECONDS,
        temp_dir: str | None = None,
    ) -> None:
        self._http = http_client
        self._storage = storage_client
        self._timeout_s = timeout_s
        self._temp_dir = temp_dir

    async def resolve(self, source: str) -> ResolvedSource:
        if not source:
            raise SourceResolutionError("empty input")

        if os.path.isfile(source):
            media_type, _ = mimetypes.guess_type(source)
            return ResolvedSource(
                local_path=source,
                source_url=source,
                filename=os.path.basename(source),
                media_type=media_type or "",
                downloaded=False,
            )

        scheme = urlsplit(source).scheme.lower()
        if scheme in ("http", "https"):
            return await self._download_http(source)
        if scheme == "gs":
            return await self._download_gcs(source)
        raise SourceResolutionError(f"not a file and not a valid URL: {source}", source_url=source)

    def _temp_path(self, filename: str) -> str:
        _, ext = os.path.splitext(filename)
        fd, path = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=ext, dir=self._temp_dir)
        os.close(fd)
        return path

    async def _download_http(self, source: str) -> ResolvedSource:
        url = normalize_google_drive(source)
        if url != source:
            logger.debug("Normalized Google Drive link %s -> %s", source, url)

        client = self._http or httpx.AsyncClient(timeout=self._timeout_s, follow_redirects=True)
        path = ""
        try:
            async with client.stream("GET", url, timeout=self._timeout_s) as resp:
                if not resp.is_success:
                    raise SourceResolutionError(f"http {resp.status_code}", source_url=url)

                media_type = resp.headers.get("content-type", "")
                filename = (
                    filename_from_content_disposition(resp.headers.get("content-disposition"))
                    or _filename_from_url(source)
                    or _DEFAULT_FILENAME
                )
                path = self._temp_path(filename)
                with open(path, "wb") as f:
                    async for chunk in resp.aiter_bytes():
                        f.write(chunk)
        except httpx.HTTPError as e:
            _discard(path)
            raise SourceResolutionError(f"download {url}: {e}", source_url=url) from e
        except BaseException:
            _discard(path)
            raise
        finally:
            if self._http is None:
                await client.aclose()

        logger.info("Downloaded %s -> %s (%s)", url, path, media_type or "no content-type")
        return ResolvedSource(
            local_path=path,
            source_url=url,
            filename=filename,
            media_type=media_type,
            downloaded=True,
        )

    async def _download_gcs(self, source: str) -> ResolvedSource:
        try:
            bucket, name = parse_gs_uri(source)
        except ValueError as e:
            raise SourceResolutionError(str(e), source_url=source) from e

        if self._storage is None:
            self._storage = storage.Client()

        filename = posixpath.basename(name) or _DEFAULT_FILENAME
        path = self._temp_path(filename)
        try:
            content_type = await asyncio.to_thread(download_to_file, self._storage, bucket, name, path)
        except Exception as e:
            _discard(path)
            raise SourceResolutionError(f"download {source}: {e}", source_url=source) from e
        except BaseException:
            _discard(path)
            raise

        return ResolvedSource(
            local_path=path,
            source_url=source,
            filename=filename,
            media_type=content_type or mimetypes.guess_type(filename)[0] or "",
            downloaded=True,
        )
