"""Build a Source from its URI."""
import logging
from typing import Dict, Type
from urllib.parse import urlsplit

from scrtsync.secrets.domains.errors import UnsupportedSchemeError, UriParseError
from .base import Source
from .file import FileSource
from .k8s import K8sSource
from .stdinout import StdInOutSource
from .vault import VaultSource

logger = logging.getLogger(__name__)

# Scheme -> backend. Matching is case-sensitive.
SOURCES: Dict[str, Type[Source]] = {
    "file": FileSource,
    "k8s": K8sSource,
    "kubernetes": K8sSource,
    "std": StdInOutSource,
    "vault": VaultSource,
}

SUPPORTED_SCHEMES = "file, k8s|kubernetes, std, vault"


def new_source(uri: str) -> Source:
    """
    Parse a source URI and construct the matching backend.

    Args:
        uri: Source URI, e.g. file://.env, k8s://prod/app, vault://secret/app, std://

    Returns:
        Constructed Source

    Raises:
        UriParseError: If the URI cannot be parsed or has no scheme
        UnsupportedSchemeError: If the scheme is not one of SUPPORTED_SCHEMES
        SourceConstructionError: If the backend rejects the URI or lacks credentials
    """
    try:
        url = urlsplit(uri)
    except ValueError as e:
        raise UriParseError(f"unable to parse source URL '{uri}': {e}") from e

    if not url.scheme:
        raise UriParseError(f"unable to parse source URL '{uri}': missing scheme (e.g. file://.env)")

    # urlsplit lowercases the scheme; dispatch on it as written
    scheme = uri.split(":", 1)[0].strip()

    source_cls = SOURCES.get(scheme)
    if source_cls is None:
        raise UnsupportedSchemeError(scheme, SUPPORTED_SCHEMES)

    logger.debug(f"Building {source_cls.__name__} for scheme '{scheme}'")
    return source_cls.from_url(url)
