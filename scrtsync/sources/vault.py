"""Secrets stored in a HashiCorp Vault KV version 2 engine."""
import os
import json
import logging
from urllib.parse import SplitResult

import hvac
import requests
from hvac.exceptions import VaultError

from scrtsync.secrets.domains import codec
from scrtsync.secrets.domains.credentials import find_vault_token, vault_tls_verify
from scrtsync.secrets.domains.errors import BackendIoError, SourceConstructionError
from scrtsync.secrets.domains.models import Secrets
from .base import Source, require_host, require_path

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30


class VaultSource(Source):
    """
    Reads and writes one KV v2 secret.

    URI: vault://<mount>/<secret-path>

    Environment:
        VAULT_ADDR - Vault server address (required)
        VAULT_TOKEN - Token (falls back to ~/.vault-token)
        VAULT_NAMESPACE - Enterprise namespace (optional)
        VAULT_CACERT / VAULT_SKIP_VERIFY - TLS verification (optional)
    """

    def __init__(self, mount_point: str, secret_path: str, client: hvac.Client):
        self.mount_point = mount_point
        self.secret_path = secret_path
        self.client = client

    @classmethod
    def from_url(cls, url: SplitResult) -> "VaultSource":
        mount_point = require_host(url, "mount")
        secret_path = require_path(url, "secret-path")

        address = os.getenv("VAULT_ADDR")
        if not address:
            raise SourceConstructionError(
                "VAULT_ADDR is not set. Export the Vault server address, e.g.\n"
                "  export VAULT_ADDR=https://vault.example.com:8200"
            )

        token = find_vault_token()
        if not token:
            raise SourceConstructionError(
                "No Vault token found. Set VAULT_TOKEN or run 'vault login' to create ~/.vault-token"
            )

        client = hvac.Client(
            url=address,
            token=token,
            namespace=os.getenv("VAULT_NAMESPACE") or None,
            verify=vault_tls_verify(),
            timeout=REQUEST_TIMEOUT,
        )
        logger.debug(f"Vault source: {address} mount={mount_point} path={secret_path}")
        return cls(mount_point, secret_path, client)

    def _describe(self) -> str:
        return f"vault secret '{self.mount_point}/{self.secret_path}'"

    def read_secrets(self) -> Secrets:
        logger.debug(f"Reading {self._describe()}")
        try:
            response = self.client.secrets.kv.v2.read_secret_version(
                path=self.secret_path,
                mount_point=self.mount_point,
                raise_on_deleted_version=True,
            )
        except VaultError as e:
            raise BackendIoError(f"unable to read {self._describe()}: {e}") from e
        except requests.RequestException as e:
            raise BackendIoError(f"unable to reach Vault for {self._describe()}: {e}") from e

        data = (response.get("data") or {}).get("data") or {}
        for key in data:
            problem = codec.key_problem(key)
            if problem:
                raise BackendIoError(f"key {key!r} of {self._describe()} cannot be synchronized: {problem}")
        return Secrets({key: _as_text(value) for key, value in data.items()})

    def write_secrets(self, secrets: Secrets) -> None:
        """Store the secrets as a new version, replacing every key of the previous one."""
        logger.debug(f"Writing {len(secrets)} key(s) to {self._describe()}")
        try:
            self.client.secrets.kv.v2.create_or_update_secret(
                path=self.secret_path,
                secret=dict(secrets),
                mount_point=self.mount_point,
            )
        except VaultError as e:
            raise BackendIoError(f"unable to write {self._describe()}: {e}") from e
        except requests.RequestException as e:
            raise BackendIoError(f"unable to reach Vault for {self._describe()}: {e}") from e
        logger.info(f"Wrote new version of {self._describe()}")


def _as_text(value) -> str:
    # KV entries may hold any JSON value; non-strings are kept as their JSON text
    if isinstance(value, str):
        return value
    return json.dumps(value)
