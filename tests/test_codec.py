"""Test suite for the secrets text codec.

This test suite validates:
- Decoding of KEY="VALUE" lines, comments and blank lines
- Deterministic, key-sorted encoding
- Error reporting for malformed input
"""
import io

import pytest

from scrtsync.secrets.domains import codec
from scrtsync.secrets.domains.errors import DecodeError, EncodeError
from scrtsync.secrets.domains.models import Secrets


class TestDecode:
    """Test suite for decoding secrets text."""

    def test_comments_and_blank_lines_are_ignored(self):
        """Test that comment-only lines, blank lines and inline comments are skipped."""
        result = codec.decode('# c\nbaz="qux"\n\nfoo="bar" # inline\n')

        assert result == {"baz": "qux", "foo": "bar"}

    def test_hash_inside_quotes_is_kept(self):
        """Test that '#' inside a quoted value does not start a comment."""
        text = """
            # single line comment
            baz="qu#x" # inline comment
            foo="bar"

        """

        assert codec.decode(text) == {"baz": "qu#x", "foo": "bar"}

    def test_duplicate_key_last_wins(self):
        """Test that a later line overrides an earlier one with the same key."""
        assert codec.decode('k="a"\nk="b"\n') == {"k": "b"}

    def test_escapes_are_unescaped(self):
        """Test that JSON escapes inside values are resolved."""
        result = codec.decode(r'k="say \"hi\"\n\ttab \\ \u00e9"')

        assert result["k"] == 'say "hi"\n\ttab \\ é'

    def test_bare_value_is_plain_string(self):
        """Test that unquoted values are read as plain strings."""
        result = codec.decode("name=hello world\nempty=\n")

        assert result == {"name": "hello world", "empty": ""}

    def test_whitespace_around_key_and_value_is_trimmed(self):
        """Test that whitespace around '=' and the line is trimmed."""
        assert codec.decode('   key   =   "value"   ') == {"key": "value"}

    def test_only_first_equals_splits(self):
        """Test that '=' inside a value is preserved."""
        assert codec.decode('url="a=b&c=d"') == {"url": "a=b&c=d"}

    def test_quoted_value_spanning_lines(self):
        """Test that a quoted value left open continues on the next line."""
        result = codec.decode('cert="line one\nline two"\nother="x"\n')

        assert result == {"cert": "line one\nline two", "other": "x"}

    def test_windows_line_endings(self):
        """Test that CRLF line endings are accepted."""
        assert codec.decode('a="1"\r\nb="2"\r\n') == {"a": "1", "b": "2"}

    def test_empty_input(self):
        """Test that empty input decodes to an empty collection."""
        assert codec.decode("") == {}

    def test_decoded_secrets_iterate_in_key_order(self):
        """Test that input order is not preserved; keys come out sorted."""
        result = codec.decode('zeta="1"\nalpha="2"\nmid="3"\n')

        assert list(result) == ["alpha", "mid", "zeta"]


class TestDecodeErrors:
    """Test suite for malformed input."""

    def test_unterminated_value(self):
        """Test that an unterminated quoted value fails with DecodeError."""
        with pytest.raises(DecodeError) as exc_info:
            codec.decode('k="unterminated\n')

        assert "unterminated" in str(exc_info.value)

    def test_invalid_escape(self):
        """Test that an invalid escape sequence fails with DecodeError."""
        with pytest.raises(DecodeError):
            codec.decode(r'k="bad \q escape"')

    def test_missing_separator(self):
        """Test that a line without '=' fails with DecodeError naming the line."""
        with pytest.raises(DecodeError) as exc_info:
            codec.decode('a="1"\njustakey\n')

        assert "line 2" in str(exc_info.value)

    def test_empty_key(self):
        """Test that a line with an empty key fails with DecodeError."""
        with pytest.raises(DecodeError):
            codec.decode('="value"')

    def test_lone_surrogate_escape(self):
        """Test that an escape decoding to a lone surrogate fails with DecodeError."""
        with pytest.raises(DecodeError) as exc_info:
            codec.decode('k="\\ud800"\n')

        assert "surrogate" in str(exc_info.value)

    def test_surrogate_pair_escape(self):
        """Test that a valid surrogate pair escape decodes to one character."""
        assert codec.decode(r'k="\ud83d\ude00"') == {"k": "\U0001f600"}

    def test_error_does_not_echo_value(self):
        """Test that decode errors never contain the secret value."""
        with pytest.raises(DecodeError) as exc_info:
            codec.decode(r'password="hunter2\x"')

        assert "hunter2" not in str(exc_info.value)
        assert "password" in str(exc_info.value)


class TestEncode:
    """Test suite for encoding secrets."""

    def test_encode_sorts_by_key(self):
        """Test that lines are emitted in ascending key order."""
        secrets = Secrets({"foo": "bar", "baz": "qux"})

        assert codec.encode(secrets) == 'baz="qux"\nfoo="bar"\n'

    def test_encode_is_independent_of_insertion_order(self):
        """Test that equal collections encode to identical output."""
        first = Secrets({"a": "1", "b": "2", "c": "3"})
        second = Secrets({"c": "3", "a": "1", "b": "2"})

        assert codec.encode(first) == codec.encode(second)

    def test_encode_escapes_values(self):
        """Test that quotes, backslashes and newlines are escaped."""
        secrets = Secrets({"k": 'a "b"\\\nc'})

        assert codec.encode(secrets) == 'k="a \\"b\\"\\\\\\nc"\n'

    def test_encode_keeps_non_ascii(self):
        """Test that non-ASCII characters are written as-is."""
        assert codec.encode(Secrets({"k": "héllo ✓"})) == 'k="héllo ✓"\n'

    def test_round_trip(self):
        """Test that decoding encoded secrets gives back the same secrets."""
        secrets = Secrets({
            "plain": "value",
            "empty": "",
            "quotes": 'say "hi"',
            "hash": "not # a comment",
            "multiline": "-----BEGIN KEY-----\nabc\n-----END KEY-----\n",
            "backslash": "C:\\path\\to",
            "unicode": "日本語 \u2028 é",
            "control": "\x00\x1f\t\r",
        })

        assert codec.decode(codec.encode(secrets)) == secrets


class TestStreams:
    """Test suite for reading from and writing to streams."""

    def test_from_reader_binary(self):
        """Test reading UTF-8 bytes from a binary stream."""
        reader = io.BytesIO('k="é"\n'.encode("utf-8"))

        assert codec.from_reader(reader) == {"k": "é"}

    def test_from_reader_text(self):
        """Test reading from a text stream."""
        assert codec.from_reader(io.StringIO('k="v"\n')) == {"k": "v"}

    def test_from_reader_invalid_utf8(self):
        """Test that invalid UTF-8 fails with DecodeError."""
        with pytest.raises(DecodeError):
            codec.from_reader(io.BytesIO(b'k="\xff\xfe"\n'))

    def test_from_reader_read_failure(self):
        """Test that a failing stream fails with DecodeError."""
        reader = io.BytesIO(b"")
        reader.close()

        with pytest.raises(DecodeError):
            codec.from_reader(reader)

    def test_to_writer_binary(self):
        """Test writing UTF-8 bytes to a binary stream."""
        writer = io.BytesIO()
        codec.to_writer(Secrets({"b": "2", "a": "é"}), writer)

        assert writer.getvalue() == 'a="é"\nb="2"\n'.encode("utf-8")

    def test_to_writer_text(self):
        """Test writing to a text stream."""
        writer = io.StringIO()
        codec.to_writer(Secrets({"a": "1"}), writer)

        assert writer.getvalue() == 'a="1"\n'

    def test_to_writer_failure(self):
        """Test that a failing writer fails with EncodeError."""
        writer = io.BytesIO()
        writer.close()

        with pytest.raises(EncodeError):
            codec.to_writer(Secrets({"a": "1"}), writer)


class TestSecretsModel:
    """Test suite for the Secrets collection."""

    def test_empty(self):
        """Test that Secrets can be built empty."""
        assert len(Secrets()) == 0

    def test_equal_to_plain_mapping(self):
        """Test that Secrets compares equal to a dict with the same items."""
        assert Secrets({"a": "1"}) == {"a": "1"}
        assert Secrets({"a": "1"}) != {"a": "2"}

    def test_repr_hides_values(self):
        """Test that repr shows keys but never values."""
        text = repr(Secrets({"token": "s3cr3t"}))

        assert "token" in text
        assert "s3cr3t" not in text

    def test_is_read_only(self):
        """Test that Secrets cannot be mutated."""
        secrets = Secrets({"a": "1"})

        with pytest.raises(TypeError):
            secrets["a"] = "2"

    def test_empty_key_rejected(self):
        """Test that Secrets refuses an empty key."""
        with pytest.raises(ValueError):
            Secrets({"": "x"})

    def test_non_string_key_rejected(self):
        """Test that Secrets refuses keys that are not strings."""
        with pytest.raises(ValueError):
            Secrets({1: "x"})


class TestKeyProblem:
    """Test suite for checking which keys can be stored as text."""

    @pytest.mark.parametrize("key", ["", "a=b", "x#y", 'q"q', "a\nb", "a\rb", " pad", "pad "])
    def test_unstorable_keys(self, key):
        """Test that keys which would not decode back to themselves are reported."""
        assert codec.key_problem(key) is not None

    @pytest.mark.parametrize("key", ["API_KEY", "db.password", "with space", "é"])
    def test_storable_keys(self, key):
        """Test that ordinary keys pass."""
        assert codec.key_problem(key) is None

    def test_storable_key_survives_round_trip(self):
        """Test that a key accepted by the check decodes back unchanged."""
        secrets = Secrets({"with space": "v", "db.password": "p"})

        assert codec.decode(codec.encode(secrets)) == secrets
