# backend/deepl_wrapper/services/artifact_store.py
"""
Short-lived on-disk storage for one translation request.

The uploaded document and the translated result each live in their own temp
file for as long as the request needs them. Files are created through an
`ArtifactScope`, which deletes everything it created when the `with` block
exits, whether the block returned, raised or was cancelled.
"""

import logging
import re
import secrets
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from deepl_wrapper.core.log_utils import sanitize_for_log
from deepl_wrapper.exceptions import InternalError

logger = logging.getLogger(__name__)

_EXTENSION_RE = re.compile(r"^\.[A-Za-z0-9]{1,15}$")
_RANDOM_SUFFIX_BYTES = 8  # 16 hex chars


@dataclass(frozen=True)
class ArtifactHandle:
    path: Path
    label: str

    @property
    def name(self) -> str:
        return self.path.name


def normalize_extension(suggested_extension: str | None) -> str:
    """Keep an extension only if it looks like one (`.docx`), otherwise drop it."""
    if not suggested_extension:
        return ""
    ext = suggested_extension if suggested_extension.startswith(".") else f".{suggested_extension}"
    return ext if _EXTENSION_RE.match(ext) else ""


class TempArtifactStore:
    def __init__(self, base_dir: str | Path):
        self.base_dir = Path(base_dir)

    def _new_path(self, suggested_extension: str | None, label: str) -> Path:
        timestamp_ms = time.time_ns() // 1_000_000
        random_part = secrets.token_hex(_RANDOM_SUFFIX_BYTES)
        ext = normalize_extension(suggested_extension)
        return self.base_dir / f"{label}-{timestamp_ms}-{random_part}{ext}"

    def _create_exclusive(self, data: bytes, suggested_extension: str | None, label: str) -> Path:
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise InternalError(f"Temporary directory is not usable: {e}") from e

        # A clash is astronomically unlikely; exclusive create turns it into a retry.
        for _ in range(3):
            path = self._new_path(suggested_extension, label)
            try:
                with path.open("xb") as fh:
                    fh.write(data)
                return path
            except FileExistsError:
                logger.warning(f"Temporary file name clash on {path.name}, retrying.")
            except OSError as e:
                self._unlink_quietly(path)
                raise InternalError(f"Could not write temporary file: {e}") from e
        raise InternalError("Could not allocate a unique temporary file name.")

    def stash(self, data: bytes, suggested_extension: str | None, label: str = "input") -> ArtifactHandle:
        path = self._create_exclusive(data, suggested_extension, label)
        logger.debug(f"Stashed {len(data)} bytes as {path.name}")
        return ArtifactHandle(path=path, label=label)

    def allocate(self, suggested_extension: str | None, label: str = "output") -> ArtifactHandle:
        """Reserve an empty file to be filled later (e.g. a streamed download)."""
        path = self._create_exclusive(b"", suggested_extension, label)
        return ArtifactHandle(path=path, label=label)

    def retrieve(self, handle: ArtifactHandle) -> bytes:
        try:
            return handle.path.read_bytes()
        except OSError as e:
            raise InternalError(f"Could not read temporary file {handle.name}: {e}") from e

    def release(self, handle: ArtifactHandle) -> None:
        """Delete the artifact. Safe to call more than once; never raises."""
        self._unlink_quietly(handle.path)

    @staticmethod
    def _unlink_quietly(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(
                f"Failed to remove temporary file '{sanitize_for_log(path.name)}': {e}"
            )

    @contextmanager
    def scope(self) -> Iterator["ArtifactScope"]:
        artifact_scope = ArtifactScope(self)
        try:
            yield artifact_scope
        finally:
            artifact_scope.release_all()


class ArtifactScope:
    """Tracks the artifacts created for one request so they can be released together."""

    def __init__(self, store: TempArtifactStore):
        self.store = store
        self.handles: list[ArtifactHandle] = []

    def stash(self, data: bytes, suggested_extension: str | None, label: str = "input") -> ArtifactHandle:
        handle = self.store.stash(data, suggested_extension, label)
        self.handles.append(handle)
        return handle

    def allocate(self, suggested_extension: str | None, label: str = "output") -> ArtifactHandle:
        handle = self.store.allocate(suggested_extension, label)
        self.handles.append(handle)
        return handle

    def retrieve(self, handle: ArtifactHandle) -> bytes:
        return self.store.retrieve(handle)

    def release_all(self) -> None:
        while self.handles:
            self.store.release(self.handles.pop())
