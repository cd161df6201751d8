from __future__ import annotations

import contextlib
import logging
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, List, Mapping, Optional

from ..errors import IncompleteDownloadError, ModelNotFoundError, StorageError
from ..settings import DEFAULT_MODEL_BASE_URL, ModelSettings
from .catalog import ModelDescriptor, ModelType, describe
from .fetch import Fetcher, HttpxFetcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedModel:
    """A validated model file on local storage."""

    local_path: Path
    size_bytes: int

    def read_bytes(self) -> bytes:
        try:
            return self.local_path.read_bytes()
        except OSError as exc:
            raise StorageError(f"cannot read model file {self.local_path}: {exc}") from exc


class ModelManager:
    """Resolves catalog entries to files in a local cache directory.

    A cached file is reused only when its size matches the catalog. Downloads
    go to a temporary file in the cache directory and are moved into place
    with :func:`os.replace` once their size checks out, so concurrent readers
    never see a partial file. Two concurrent downloads of the same model
    both complete and the last rename wins.
    """

    def __init__(
        self,
        cache_dir: str | Path,
        *,
        fetcher: Optional[Fetcher] = None,
        base_url: str = DEFAULT_MODEL_BASE_URL,
        catalog: Optional[Mapping[ModelType, ModelDescriptor]] = None,
    ) -> None:
        self._cache_dir = Path(cache_dir).expanduser()
        self._fetcher = fetcher or HttpxFetcher()
        self._base_url = base_url
        self._catalog = catalog

    @classmethod
    def from_settings(cls, cfg: ModelSettings, *, fetcher: Optional[Fetcher] = None) -> "ModelManager":
        if fetcher is None:
            fetcher = HttpxFetcher(timeout=cfg.download_timeout, chunk_size=cfg.chunk_size)
        return cls(cfg.cache_dir, fetcher=fetcher, base_url=cfg.base_url)

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def descriptor(self, model_type: ModelType) -> ModelDescriptor:
        if self._catalog is not None:
            return self._catalog[model_type]
        return describe(model_type, self._base_url)

    def cache_path(self, model_type: ModelType) -> Path:
        return self._cache_dir / self.descriptor(model_type).cache_filename

    def lookup(self, model_type: ModelType) -> Optional[CachedModel]:
        """Return the cached model if present and of the expected size. Never touches the network."""
        descriptor = self.descriptor(model_type)
        path = self._cache_dir / descriptor.cache_filename
        try:
            size = path.stat().st_size
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"cannot stat cached model {path}: {exc}") from exc

        if size != descriptor.expected_size_bytes:
            logger.warning(
                "model.cache.size_mismatch",
                extra={"model": model_type.value, "path": str(path), "size": size, "expected": descriptor.expected_size_bytes},
            )
            return None
        return CachedModel(local_path=path, size_bytes=size)

    def is_cached(self, model_type: ModelType) -> bool:
        return self.lookup(model_type) is not None

    def resolve(self, model_type: ModelType) -> CachedModel:
        cached = self.lookup(model_type)
        if cached is not None:
            logger.info("model.resolve.cache_hit", extra={"model": model_type.value, "path": str(cached.local_path)})
            return cached
        return self._download(self.descriptor(model_type))

    def list_cached(self) -> List[CachedModel]:
        return [cached for cached in (self.lookup(member) for member in ModelType) if cached is not None]

    def evict(self, model_type: ModelType) -> bool:
        path = self.cache_path(model_type)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StorageError(f"cannot remove cached model {path}: {exc}") from exc
        logger.info("model.cache.evicted", extra={"model": model_type.value, "path": str(path)})
        return True

    @staticmethod
    def open_local(path: str | Path) -> CachedModel:
        """Wrap a user-supplied model file that is not managed by the catalog."""
        local_path = Path(path).expanduser()
        if not local_path.is_file():
            raise ModelNotFoundError(f"model file not found: {local_path}")
        return CachedModel(local_path=local_path, size_bytes=local_path.stat().st_size)

    def _download(self, descriptor: ModelDescriptor) -> CachedModel:
        final_path = self._cache_dir / descriptor.cache_filename
        logger.info(
            "model.download.started",
            extra={"model": descriptor.id.value, "url": descriptor.remote_url, "expected": descriptor.expected_size_bytes},
        )
        started = time.monotonic()

        try:
            self._cache_dir.mkdir(parents=True, exist_ok=True)
            handle = tempfile.NamedTemporaryFile(
                dir=self._cache_dir,
                prefix=f".{descriptor.cache_filename}.",
                suffix=".part",
                delete=False,
            )
        except OSError as exc:
            raise StorageError(f"cannot create a temporary file in {self._cache_dir}: {exc}") from exc

        temp_path = Path(handle.name)
        try:
            with handle:
                received = self._write_artifact(descriptor, handle)
            if received != descriptor.expected_size_bytes:
                raise IncompleteDownloadError(
                    descriptor.remote_url,
                    expected=descriptor.expected_size_bytes,
                    received=received,
                )
            os.replace(temp_path, final_path)
        except OSError as exc:
            raise StorageError(f"cannot write model cache file {final_path}: {exc}") from exc
        finally:
            with contextlib.suppress(OSError):
                temp_path.unlink(missing_ok=True)

        logger.info(
            "model.download.done",
            extra={
                "model": descriptor.id.value,
                "path": str(final_path),
                "bytes": received,
                "elapsedSeconds": round(time.monotonic() - started, 2),
            },
        )
        return CachedModel(local_path=final_path, size_bytes=received)

    def _write_artifact(self, descriptor: ModelDescriptor, handle: BinaryIO) -> int:
        received = 0
        with self._fetcher.fetch(descriptor.remote_url) as chunks:
            for chunk in chunks:
                received += len(chunk)
                if received > descriptor.expected_size_bytes:
                    break
                handle.write(chunk)
        handle.flush()
        os.fsync(handle.fileno())
        return received


__all__ = ["CachedModel", "ModelManager"]
