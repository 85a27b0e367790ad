"""Text codec for secrets.

Secrets are stored as dotenv-style lines::

    # comment
    API_KEY="s3cr3t"
    GREETING="hello \\"world\\"\\n"

Values are JSON string literals: JSON escaping is reused purely as an escaping
mechanism. Output is always sorted by key so that files are diffable.
"""
import io
import json
import logging
from typing import Iterator, Mapping, Optional, Tuple

from .errors import DecodeError, EncodeError
from .models import Secrets

logger = logging.getLogger(__name__)

# strict=False lets raw tabs and newlines (multi-line values) through.
_DECODER = json.JSONDecoder(strict=False)


def _strip_comment(line: str, in_quotes: bool) -> Tuple[str, bool]:
    """
    Cut a physical line at its first unquoted '#'.

    Args:
        line: Physical line without its newline
        in_quotes: Whether a quoted value is already open from a previous line

    Returns:
        Tuple of (content before the comment, whether a quote is still open)
    """
    escaped = False
    for index, char in enumerate(line):
        if in_quotes:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_quotes = False
        elif char == '"':
            in_quotes = True
        elif char == "#":
            return line[:index], False
    return line, in_quotes


def key_problem(key: str) -> Optional[str]:
    """
    Check that a key survives an encode/decode round trip.

    Returns:
        Why the key cannot be stored, or None if it can
    """
    if not key:
        return "empty key"
    if key != key.strip():
        return "leading or trailing whitespace"
    for char, name in (("=", "'='"), ("#", "'#'"), ('"', "'\"'"), ("\n", "newline"), ("\r", "carriage return")):
        if char in key:
            return f"contains {name}"
    return None


def _logical_lines(text: str) -> Iterator[Tuple[int, str]]:
    """Yield (first line number, content) for every logical line of text."""
    pending = []
    start: Optional[int] = None
    in_quotes = False

    for number, line in enumerate(text.split("\n"), start=1):
        if line.endswith("\r"):
            line = line[:-1]
        if start is None:
            start = number
        content, in_quotes = _strip_comment(line, in_quotes)
        pending.append(content)
        if in_quotes:
            # A quoted value continues on the next physical line
            continue
        yield start, "\n".join(pending)
        pending = []
        start = None

    if in_quotes:
        raise DecodeError(f"line {start}: unterminated quoted value")


def _parse_line(number: int, line: str) -> Optional[Tuple[str, str]]:
    line = line.strip()
    if not line:
        return None

    key, separator, token = line.partition("=")
    if not separator:
        raise DecodeError(f"line {number}: expected KEY=VALUE, found no '='")

    key = key.strip()
    if not key:
        raise DecodeError(f"line {number}: empty key")

    token = token.strip()
    if not (len(token) >= 2 and token.startswith('"') and token.endswith('"')):
        token = f'"{token}"'

    try:
        value = _DECODER.decode(token)
    except json.JSONDecodeError as e:
        # Never echo the token, it is a secret
        raise DecodeError(f"line {number}: invalid value for '{key}': {e.msg}") from e

    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise DecodeError(f"line {number}: invalid value for '{key}': lone surrogate") from e

    return key, value


def decode(text: str) -> Secrets:
    """
    Decode secrets text into a Secrets collection.

    Args:
        text: Secrets text, one KEY="VALUE" per line

    Returns:
        Decoded secrets. When a key appears twice, the last line wins.

    Raises:
        DecodeError: If a line is malformed or a value is not a valid escaped string
    """
    content = {}
    for number, line in _logical_lines(text):
        entry = _parse_line(number, line)
        if entry is None:
            continue
        key, value = entry
        content[key] = value

    logger.debug(f"Decoded {len(content)} secret(s)")
    return Secrets(content)


def encode(secrets: Mapping) -> str:
    """Encode secrets as KEY="VALUE" lines sorted by key."""
    return "".join(
        f"{key}={json.dumps(value, ensure_ascii=False)}\n"
        for key, value in sorted(secrets.items())
    )


def from_reader(reader) -> Secrets:
    """
    Read and decode secrets from a stream.

    Args:
        reader: Binary stream of UTF-8 text, or a text stream

    Returns:
        Decoded secrets

    Raises:
        DecodeError: If the stream cannot be read or its content is malformed
    """
    try:
        data = reader.read()
    except (OSError, ValueError) as e:
        raise DecodeError(f"unable to read secrets: {e}") from e

    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise DecodeError(f"secrets are not valid UTF-8: {e.reason} at byte {e.start}") from e

    return decode(data)


def to_writer(secrets: Mapping, writer) -> None:
    """
    Encode secrets and write them to a stream.

    Args:
        secrets: Secrets to write
        writer: Binary or text stream

    Raises:
        EncodeError: If the writer fails
    """
    text = encode(secrets)
    try:
        if isinstance(writer, io.TextIOBase):
            writer.write(text)
        else:
            writer.write(text.encode("utf-8"))
    except (OSError, ValueError) as e:
        # UnicodeEncodeError is a ValueError
        raise EncodeError(f"unable to write secrets: {e}") from e
