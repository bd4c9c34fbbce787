"""Shared SentencePiece conversion helpers used across the CLI and tooling."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Dict, List, Mapping, Tuple, Union

SPACE_MARKER = "▁"
BYTE_PIECE_PREFIX = "<0x"
BYTE_PIECE_HEX_SLICE = slice(3, 5)
UNICODE_ESCAPE_PREFIX = "\\u"

VOCAB_FILENAME = "vocab.json"
DUPLICATES_FILENAME = "duplicates.json"
SPECIALS_FILENAME = "specials.txt"
MERGES_FILENAME = "merges.json"
LOG_FILENAME = "conversion.log"
ARTIFACT_FILENAMES: Tuple[str, ...] = (
    VOCAB_FILENAME,
    DUPLICATES_FILENAME,
    SPECIALS_FILENAME,
    MERGES_FILENAME,
)

_ESCAPE_TABLE: Dict[int, str] = {
    ord('"'): '\\"',
    ord("\\"): "\\\\",
    ord("\n"): "\\n",
    ord("\r"): "\\r",
    ord("\b"): "\\b",
    ord("\t"): "\\t",
}
_UNESCAPE_TABLE: Dict[str, str] = {
    '"': '"',
    "\\": "\\",
    "n": "\n",
    "r": "\r",
    "b": "\b",
    "t": "\t",
}
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
# A whole JSON string holding a code point above U+FFFF written by `escape`.
_ASTRAL_ESCAPE = re.compile(r'(?<=")\\u([0-9a-f]{5,6})(?=")')


class PieceType(IntEnum):
    """Piece type tags, numbered as in the SentencePiece model protobuf."""

    NORMAL = 1
    UNKNOWN = 2
    CONTROL = 3
    USER_DEFINED = 4
    UNUSED = 5
    BYTE = 6


@dataclass(frozen=True)
class PieceRecord:
    """One entry of the flat SentencePiece vocabulary."""

    text: str
    type: PieceType
    id: int
    score: float = 0.0

    @property
    def is_byte(self) -> bool:
        return self.type == PieceType.BYTE

    @property
    def is_control(self) -> bool:
        return self.type == PieceType.CONTROL


class MalformedPieceError(ValueError):
    """Raised when a piece's text does not match its declared type."""


class ArtifactFormatError(ValueError):
    """Raised when a written artefact cannot be read back."""


def decode_byte_piece(text: str) -> str:
    """Return the one-character representation of a ``<0xHH>`` byte piece.

    ASCII bytes map to the matching character. Bytes above ``0x7F`` are not
    valid UTF-8 on their own and map to their ``surrogateescape`` character,
    which never equals a textual piece.
    """

    hex_repr = text[BYTE_PIECE_HEX_SLICE]
    if len(hex_repr) != 2 or not set(hex_repr) <= _HEX_DIGITS:
        raise MalformedPieceError(f"Byte piece {text!r} does not carry a two digit hex payload")
    return bytes.fromhex(hex_repr).decode("utf-8", "surrogateescape")


def byte_value(representation: str) -> int:
    """Inverse of :func:`decode_byte_piece`."""

    return representation.encode("utf-8", "surrogateescape")[0]


def escape(value: str) -> str:
    """Escape ``value`` for embedding inside a double-quoted JSON string."""

    escaped = value.translate(_ESCAPE_TABLE)
    if len(escaped) == 1 and not escaped.isprintable():
        escaped = "\\u%04x" % ord(escaped)
    return escaped


def unescape(value: str) -> str:
    """Reverse :func:`escape`."""

    if value.startswith(UNICODE_ESCAPE_PREFIX):
        digits = value[len(UNICODE_ESCAPE_PREFIX) :]
        if digits and set(digits) <= _HEX_DIGITS:
            return chr(int(digits, 16))

    chars: List[str] = []
    idx = 0
    while idx < len(value):
        char = value[idx]
        if char == "\\" and idx + 1 < len(value) and value[idx + 1] in _UNESCAPE_TABLE:
            chars.append(_UNESCAPE_TABLE[value[idx + 1]])
            idx += 2
            continue
        chars.append(char)
        idx += 1
    return "".join(chars)


def _surrogate_pair(match: "re.Match[str]") -> str:
    code_point = int(match.group(1), 16)
    if code_point > 0x10FFFF:
        return match.group(0)
    code_point -= 0x10000
    return "\\u%04x\\u%04x" % (0xD800 + (code_point >> 10), 0xDC00 + (code_point & 0x3FF))


def _load_json(path: Path) -> object:
    # JSON reads exactly four hex digits after ``\u``; longer escapes from
    # ``escape`` are rewritten as surrogate pairs first.
    text = _ASTRAL_ESCAPE.sub(_surrogate_pair, path.read_text(encoding="utf-8"))
    try:
        # Raw control characters inside multi-character strings are left
        # unescaped by the writers.
        return json.loads(text, strict=False)
    except json.JSONDecodeError as exc:
        raise ArtifactFormatError(f"Artefact {path} is not valid JSON: {exc}") from exc


def read_vocab(path: Path) -> Dict[str, int]:
    """Load ``vocab.json``. Repeated keys keep the highest id."""

    payload = _load_json(path)
    if not isinstance(payload, Mapping):
        raise ArtifactFormatError(f"Vocabulary artefact {path} must be a mapping")
    return {str(key): int(value) for key, value in payload.items()}


def read_duplicates(path: Path) -> List[Dict[str, object]]:
    payload = _load_json(path)
    if not isinstance(payload, list):
        raise ArtifactFormatError(f"Duplicates artefact {path} must be a list")
    records: List[Dict[str, object]] = []
    for item in payload:
        if not isinstance(item, Mapping):
            raise ArtifactFormatError(f"Duplicates artefact {path} contains a non-object entry")
        records.append(
            {"old_id": int(item["old_id"]), "new_id": int(item["new_id"]), "repr": str(item["repr"])}
        )
    return records


def read_specials(path: Path) -> List[str]:
    """Load ``specials.txt``, one control text per line.

    Control texts are written verbatim, so a text containing a line break
    comes back as several entries.
    """

    text = path.read_text(encoding="utf-8")
    return text.split("\n")[:-1] if text else []


def read_merges(path: Path) -> List[Union[Tuple[str, str], Dict[str, object]]]:
    """Load ``merges.json`` in either the compact or the verbose layout."""

    payload = _load_json(path)
    if not isinstance(payload, list):
        raise ArtifactFormatError(f"Merges artefact {path} must be a list")
    merges: List[Union[Tuple[str, str], Dict[str, object]]] = []
    for item in payload:
        if isinstance(item, list) and len(item) == 2:
            merges.append((str(item[0]), str(item[1])))
        elif isinstance(item, Mapping):
            merges.append(dict(item))
        else:
            raise ArtifactFormatError(f"Merges artefact {path} contains an unsupported entry: {item!r}")
    return merges


__all__ = [
    "ARTIFACT_FILENAMES",
    "ArtifactFormatError",
    "BYTE_PIECE_PREFIX",
    "DUPLICATES_FILENAME",
    "LOG_FILENAME",
    "MERGES_FILENAME",
    "MalformedPieceError",
    "PieceRecord",
    "PieceType",
    "SPACE_MARKER",
    "SPECIALS_FILENAME",
    "VOCAB_FILENAME",
    "byte_value",
    "decode_byte_piece",
    "escape",
    "read_duplicates",
    "read_merges",
    "read_specials",
    "read_vocab",
    "unescape",
]
