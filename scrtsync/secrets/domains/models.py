"""Domain models for secret synchronization."""
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional


class Secrets(Mapping):
    """Read-only collection of secrets, always iterated in ascending key order.

    Compares equal to any mapping holding the same items, so
    ``Secrets({"a": "1"}) == {"a": "1"}``.
    """

    __slots__ = ("_content",)

    def __init__(self, content: Optional[Mapping] = None):
        """
        Raises:
            ValueError: If a key is not a non-empty string
        """
        items = sorted((content or {}).items())
        for key, _value in items:
            if not isinstance(key, str) or not key:
                raise ValueError(f"Secret keys must be non-empty strings, got {key!r}")
        self._content: Dict[str, str] = dict(items)

    def __getitem__(self, key: str) -> str:
        return self._content[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._content)

    def __len__(self) -> int:
        return len(self._content)

    def __repr__(self) -> str:
        # Values are secret; only show the keys.
        return f"Secrets(keys={list(self._content)!r})"


class JobState(Enum):
    """Lifecycle of a sync job."""
    CREATED = "created"
    READING = "reading"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PresetConfig:
    """A named origin/target pair from the config file."""
    from_uri: str
    to_uri: str


@dataclass
class Config:
    """Parsed config file."""
    presets: Dict[str, PresetConfig]

    @classmethod
    def empty(cls) -> "Config":
        return cls(presets={})
