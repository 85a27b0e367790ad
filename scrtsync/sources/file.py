"""Secrets stored in a local dotenv-style file."""
import os
import shutil
import logging
import tempfile
from pathlib import Path
from urllib.parse import SplitResult, unquote

from scrtsync.secrets.domains import codec
from scrtsync.secrets.domains.errors import BackendIoError, SourceConstructionError
from scrtsync.secrets.domains.models import Secrets
from .base import Source

logger = logging.getLogger(__name__)


class FileSource(Source):
    """Reads and writes a secrets file, e.g. file://.env or file://config/app.env."""

    def __init__(self, path: str):
        self.path = Path(path)

    @classmethod
    def from_url(cls, url: SplitResult) -> "FileSource":
        if not url.netloc:
            raise SourceConstructionError(
                "file URI is missing a path (expected file://<path>, e.g. file://.env)"
            )

        path = unquote(url.netloc + url.path).strip("/")
        if not path:
            raise SourceConstructionError("file URI resolves to an empty path")
        return cls(path)

    def read_secrets(self) -> Secrets:
        logger.debug(f"Reading secrets from file {self.path}")
        try:
            with open(self.path, "rb") as f:
                return codec.from_reader(f)
        except OSError as e:
            raise BackendIoError(f"unable to open {self.path}: {e.strerror or e}") from e

    def write_secrets(self, secrets: Secrets) -> None:
        """
        Write atomically: encode to a temp file beside the target, then rename over it.

        Symlinks are followed, so the file they point to is replaced. An existing
        file keeps its permission bits; a new file is created with mode 0600.
        """
        logger.debug(f"Writing {len(secrets)} secret(s) to file {self.path}")
        target = Path(os.path.realpath(self.path))

        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
            )
        except OSError as e:
            raise BackendIoError(f"unable to write {self.path}: {e.strerror or e}") from e

        try:
            with os.fdopen(fd, "wb") as f:
                codec.to_writer(secrets, f)
            if target.exists():
                shutil.copymode(target, tmp_name)
            os.replace(tmp_name, target)
        except OSError as e:
            raise BackendIoError(f"unable to write {self.path}: {e.strerror or e}") from e
        finally:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
