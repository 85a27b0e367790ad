"""Source interface implemented by every backend."""
from abc import ABC, abstractmethod
from urllib.parse import SplitResult

from scrtsync.secrets.domains.errors import SourceConstructionError
from scrtsync.secrets.domains.models import Secrets


class Source(ABC):
    """
    A place secrets can be read from or written to.

    Implementations are built from a parsed URI with from_url and are used for
    at most one read and one write. Both calls may block.
    """

    @classmethod
    @abstractmethod
    def from_url(cls, url: SplitResult) -> "Source":
        """
        Build the source from its parsed URI.

        Raises:
            SourceConstructionError: If the URI lacks a required field or
                credentials are missing
        """

    @abstractmethod
    def read_secrets(self) -> Secrets:
        """
        Read the full secret collection.

        Raises:
            BackendIoError: If the backend cannot be read
            DecodeError: If the stored text is malformed
        """

    @abstractmethod
    def write_secrets(self, secrets: Secrets) -> None:
        """
        Replace the backend's content with the given secrets.

        Raises:
            BackendIoError: If the backend cannot be written
            EncodeError: If the writer fails
        """


def require_host(url: SplitResult, what: str) -> str:
    """Return the URI authority, failing if it is absent."""
    if not url.netloc:
        raise SourceConstructionError(
            f"{url.scheme} URI is missing the {what} (expected {url.scheme}://<{what}>/...)"
        )
    return url.netloc


def require_path(url: SplitResult, what: str) -> str:
    """Return the URI path without surrounding slashes, failing if it is empty."""
    path = url.path.strip("/")
    if not path:
        raise SourceConstructionError(
            f"{url.scheme} URI is missing the {what} (expected {url.scheme}://<host>/<{what}>)"
        )
    return path
