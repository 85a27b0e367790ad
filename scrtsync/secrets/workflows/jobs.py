"""Jobs run by the CLI: synchronizing secrets and creating a default config."""
import sys
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from ..domains.config_loader import DEFAULT_CONFIG
from ..domains.errors import ConfigError, JobError, NoSourceProvidedError
from ..domains.models import Config, JobState
from scrtsync.sources.base import Source
from scrtsync.sources.registry import new_source

logger = logging.getLogger(__name__)

INIT_PRESET = "init"
STD_URI = "std://"

DEFAULT_CONFIG_CONTENT = """{
  "presets": {
    "example": {
      "from": "k8s://my-context/my-secret",
      "to": "file://.env"
    }
  }
}
"""


class Job(ABC):
    """A unit of work selected from the command line."""

    @abstractmethod
    def run(self) -> None:
        pass


class SyncJob(Job):
    """
    Copy secrets from an origin source to a target source.

    Reads once, writes once, no retries. If the write fails the secrets that
    were read are dropped and the origin is not touched again.
    """

    def __init__(self, origin: Source, target: Source):
        self.origin = origin
        self.target = target
        self.state = JobState.CREATED

    def run(self) -> None:
        self.state = JobState.READING
        try:
            secrets = self.origin.read_secrets()
        except Exception as e:
            self.state = JobState.FAILED
            raise JobError("origin", "read", e) from e
        logger.info(f"Read {len(secrets)} secret(s) from origin")

        self.state = JobState.WRITING
        try:
            self.target.write_secrets(secrets)
        except Exception as e:
            self.state = JobState.FAILED
            raise JobError("target", "write", e) from e

        self.state = JobState.DONE
        logger.info(f"Wrote {len(secrets)} secret(s) to target")


class InitJob(Job):
    """Write the default config file to the working directory."""

    def __init__(self, path: str = DEFAULT_CONFIG):
        self.path = Path(path)

    def run(self) -> None:
        try:
            # 'x' refuses to overwrite an existing config
            with open(self.path, "x", encoding="utf-8") as f:
                f.write(DEFAULT_CONFIG_CONTENT)
        except FileExistsError as e:
            raise ConfigError(f"{self.path} already exists") from e
        except OSError as e:
            raise ConfigError(f"Unable to create default config at {self.path}: {e}") from e

        print(f"Created {self.path}", file=sys.stderr)


def _is_tty(stream) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        # Closed or missing stream
        return False


def _build_source(side: str, uri: str) -> Source:
    try:
        return new_source(uri)
    except Exception as e:
        raise JobError(side, "build", e) from e


def new_job(config: Config,
            from_uri: Optional[str] = None,
            to_uri: Optional[str] = None,
            preset: Optional[str] = None,
            stdin_is_tty: Optional[bool] = None,
            stdout_is_tty: Optional[bool] = None) -> Job:
    """
    Select the job for a command line.

    Priority order for each side:
    1. Standard input/output, when it is piped
    2. --from / --to
    3. The preset's from / to

    Args:
        config: Loaded config with presets
        from_uri: --from value
        to_uri: --to value
        preset: Preset name; "init" selects InitJob
        stdin_is_tty: Override TTY detection for stdin
        stdout_is_tty: Override TTY detection for stdout

    Returns:
        Job ready to run

    Raises:
        ConfigError: If the preset is not in the config
        NoSourceProvidedError: If a side has no URI
        JobError: If a source cannot be built
    """
    if preset == INIT_PRESET:
        return InitJob()

    preset_cfg = None
    if preset is not None:
        preset_cfg = config.presets.get(preset)
        if preset_cfg is None:
            available = ", ".join(sorted(config.presets)) or "none defined"
            raise ConfigError(f"Unknown preset '{preset}' (available: {available})")

    if stdin_is_tty is None:
        stdin_is_tty = _is_tty(sys.stdin)
    if stdout_is_tty is None:
        stdout_is_tty = _is_tty(sys.stdout)

    if not stdin_is_tty:
        logger.debug("stdin is piped, reading secrets from std://")
        from_uri = STD_URI
    if not stdout_is_tty:
        logger.debug("stdout is piped, writing secrets to std://")
        to_uri = STD_URI

    from_uri = from_uri or (preset_cfg.from_uri if preset_cfg else None)
    if not from_uri:
        raise NoSourceProvidedError("from")

    to_uri = to_uri or (preset_cfg.to_uri if preset_cfg else None)
    if not to_uri:
        raise NoSourceProvidedError("to")

    origin = _build_source("origin", from_uri)
    target = _build_source("target", to_uri)
    return SyncJob(origin, target)
