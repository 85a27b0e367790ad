"""Credential discovery for network backends."""
import os
import logging
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)


def vault_token_file() -> Path:
    """Location where the vault CLI stores the token after `vault login`."""
    return Path.home() / ".vault-token"


def find_vault_token(environ: Optional[Mapping[str, str]] = None,
                     token_file: Optional[Path] = None) -> Optional[str]:
    """
    Find a Vault token.

    Priority order:
    1. VAULT_TOKEN environment variable
    2. Token file written by `vault login` (~/.vault-token)

    Args:
        environ: Environment to probe (defaults to os.environ)
        token_file: Token file to probe (defaults to ~/.vault-token)

    Returns:
        Token string, or None if no source provides one
    """
    environ = os.environ if environ is None else environ
    token_file = vault_token_file() if token_file is None else token_file

    token = environ.get("VAULT_TOKEN", "").strip()
    if token:
        logger.debug("Using Vault token from VAULT_TOKEN")
        return token

    try:
        token = token_file.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        logger.debug(f"No Vault token file at {token_file}")
        return None
    except OSError as e:
        logger.warning(f"Failed to read Vault token file {token_file}: {e}")
        return None

    if token:
        logger.debug(f"Using Vault token from {token_file}")
        return token
    return None


def vault_tls_verify(environ: Optional[Mapping[str, str]] = None):
    """
    TLS verification setting for the Vault client.

    Returns:
        False if VAULT_SKIP_VERIFY is truthy, the VAULT_CACERT path if set,
        True otherwise
    """
    environ = os.environ if environ is None else environ

    if environ.get("VAULT_SKIP_VERIFY", "").strip().lower() in ("1", "true", "yes"):
        logger.warning("VAULT_SKIP_VERIFY is set, TLS certificates will not be verified")
        return False

    ca_cert = environ.get("VAULT_CACERT", "").strip()
    if ca_cert:
        return ca_cert
    return True
