"""Error types raised by scrtsync."""


class ScrtsyncError(Exception):
    """Base class for every scrtsync error."""
    pass


class UriParseError(ScrtsyncError):
    """Source URI could not be parsed."""
    pass


InvalidUriError = UriParseError


class UnsupportedSchemeError(ScrtsyncError):
    """Source URI scheme is not in the registry."""

    def __init__(self, scheme: str, supported: str):
        self.scheme = scheme
        super().__init__(
            f"invalid source scheme: '{scheme}', supported schemes: {supported}"
        )


class SourceConstructionError(ScrtsyncError):
    """Backend could not be set up from its URI (missing host, credentials, ...)."""
    pass


class DecodeError(ScrtsyncError):
    """Secrets text is malformed or could not be read."""
    pass


class EncodeError(ScrtsyncError):
    """Encoded secrets could not be written."""
    pass


class BackendIoError(ScrtsyncError):
    """Backend-specific read or write failure."""
    pass


class ConfigError(ScrtsyncError):
    """Configuration error exception."""
    pass


class NoSourceProvidedError(ScrtsyncError):
    """Neither a flag, a pipe nor a preset tells us where to read or write."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(
            f"unable to determine source, provide either `--{field}` or a preset"
        )


class JobError(ScrtsyncError):
    """Wraps a failure with the side (origin/target) and stage it happened in.

    The original error is kept as ``__cause__``.
    """

    _STAGE_MESSAGES = {
        "build": "could not build {side} source",
        "read": "could not read secrets from {side}",
        "write": "could not write secrets to {side}",
    }

    def __init__(self, side: str, stage: str, cause: BaseException):
        self.side = side
        self.stage = stage
        context = self._STAGE_MESSAGES[stage].format(side=side)
        super().__init__(f"{context}: {cause}")
