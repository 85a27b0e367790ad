"""Secrets stored in a Kubernetes Secret object."""
import base64
import binascii
import logging
from typing import Optional
from urllib.parse import SplitResult, parse_qs

import urllib3
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from scrtsync.secrets.domains.errors import BackendIoError, EncodeError, SourceConstructionError
from scrtsync.secrets.domains.models import Secrets
from .base import Source, require_host, require_path

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "default"
REQUEST_TIMEOUT = 30


def _context_namespace(context: str) -> Optional[str]:
    """
    Look up a kubeconfig context and return its namespace, if it sets one.

    Raises:
        SourceConstructionError: If the kubeconfig cannot be loaded or has no such context
    """
    try:
        contexts, _active = config.list_kube_config_contexts()
    except (ConfigException, OSError) as e:
        raise SourceConstructionError(f"unable to load kubeconfig: {e}") from e

    for entry in contexts or []:
        if entry.get("name") == context:
            return (entry.get("context") or {}).get("namespace")

    raise SourceConstructionError(f"context '{context}' not found in kubeconfig")


class K8sSource(Source):
    """
    Reads and writes the data of one Kubernetes Secret.

    URI: k8s://<context>/<secret-name>[?namespace=<namespace>]
    """

    def __init__(self, context: str, secret_name: str, namespace: str, api: client.CoreV1Api):
        self.context = context
        self.secret_name = secret_name
        self.namespace = namespace
        self.api = api

    @classmethod
    def from_url(cls, url: SplitResult) -> "K8sSource":
        context = require_host(url, "context")
        secret_name = require_path(url, "secret-name")

        namespace = parse_qs(url.query).get("namespace", [None])[0]
        context_namespace = _context_namespace(context)
        namespace = namespace or context_namespace or DEFAULT_NAMESPACE

        try:
            api_client = config.new_client_from_config(context=context)
        except (ConfigException, OSError) as e:
            raise SourceConstructionError(f"unable to configure context '{context}': {e}") from e

        logger.debug(f"Kubernetes source: context={context} namespace={namespace} secret={secret_name}")
        return cls(context, secret_name, namespace, api=client.CoreV1Api(api_client))

    def _describe(self) -> str:
        return f"secret '{self.namespace}/{self.secret_name}' (context {self.context})"

    def read_secrets(self) -> Secrets:
        logger.debug(f"Reading {self._describe()}")
        try:
            secret = self.api.read_namespaced_secret(
                self.secret_name, self.namespace, _request_timeout=REQUEST_TIMEOUT
            )
        except ApiException as e:
            raise BackendIoError(f"unable to read {self._describe()}: {e.status} {e.reason}") from e
        except urllib3.exceptions.HTTPError as e:
            raise BackendIoError(f"unable to reach cluster for {self._describe()}: {e}") from e

        content = {}
        for key, encoded in (secret.data or {}).items():
            try:
                content[key] = base64.b64decode(encoded, validate=True).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError) as e:
                raise BackendIoError(f"key '{key}' of {self._describe()} is not UTF-8 text: {e}") from e

        return Secrets(content)

    def write_secrets(self, secrets: Secrets) -> None:
        """Replace the Secret's data, creating an Opaque Secret if it does not exist."""
        try:
            data = {
                key: base64.b64encode(value.encode("utf-8")).decode("ascii")
                for key, value in secrets.items()
            }
        except UnicodeEncodeError as e:
            raise EncodeError(f"unable to encode secrets for {self._describe()}: {e.reason}") from e
        logger.debug(f"Writing {len(data)} key(s) to {self._describe()}")

        try:
            try:
                existing = self.api.read_namespaced_secret(
                    self.secret_name, self.namespace, _request_timeout=REQUEST_TIMEOUT
                )
            except ApiException as e:
                if e.status != 404:
                    raise
                existing = None

            if existing is None:
                body = client.V1Secret(
                    api_version="v1",
                    kind="Secret",
                    metadata=client.V1ObjectMeta(name=self.secret_name, namespace=self.namespace),
                    type="Opaque",
                    data=data,
                )
                self.api.create_namespaced_secret(
                    self.namespace, body, _request_timeout=REQUEST_TIMEOUT
                )
                logger.info(f"Created {self._describe()}")
            else:
                # Keep metadata and type; resourceVersion guards against concurrent edits
                existing.data = data
                existing.string_data = None
                self.api.replace_namespaced_secret(
                    self.secret_name, self.namespace, existing, _request_timeout=REQUEST_TIMEOUT
                )
                logger.info(f"Updated {self._describe()}")
        except ApiException as e:
            raise BackendIoError(f"unable to write {self._describe()}: {e.status} {e.reason}") from e
        except urllib3.exceptions.HTTPError as e:
            raise BackendIoError(f"unable to reach cluster for {self._describe()}: {e}") from e
