"""Tokenizer data types and artefact helpers shared across the tooling."""

from .spm_common import (
    MalformedPieceError,
    PieceRecord,
    PieceType,
    escape,
    read_duplicates,
    read_merges,
    read_specials,
    read_vocab,
    unescape,
)

__all__ = [
    "MalformedPieceError",
    "PieceRecord",
    "PieceType",
    "escape",
    "read_duplicates",
    "read_merges",
    "read_specials",
    "read_vocab",
    "unescape",
]
