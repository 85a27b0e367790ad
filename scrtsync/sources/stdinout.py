"""Secrets piped through standard input and output."""
import sys
import logging
from urllib.parse import SplitResult

from scrtsync.secrets.domains import codec
from scrtsync.secrets.domains.errors import EncodeError
from scrtsync.secrets.domains.models import Secrets
from .base import Source

logger = logging.getLogger(__name__)


class StdInOutSource(Source):
    """Reads secrets from stdin and writes them to stdout (std://)."""

    def __init__(self, stdin=None, stdout=None):
        # Resolved at call time so that redirected sys streams are honoured
        self._stdin = stdin
        self._stdout = stdout

    @classmethod
    def from_url(cls, url: SplitResult) -> "StdInOutSource":
        return cls()

    def read_secrets(self) -> Secrets:
        stdin = self._stdin if self._stdin is not None else getattr(sys.stdin, "buffer", sys.stdin)
        logger.debug("Reading secrets from stdin")
        return codec.from_reader(stdin)

    def write_secrets(self, secrets: Secrets) -> None:
        stdout = self._stdout if self._stdout is not None else getattr(sys.stdout, "buffer", sys.stdout)
        logger.debug(f"Writing {len(secrets)} secret(s) to stdout")
        codec.to_writer(secrets, stdout)
        try:
            stdout.flush()
        except (OSError, ValueError) as e:
            raise EncodeError(f"unable to flush stdout: {e}") from e
