"""Deterministic conversion of SentencePiece models into BPE artefacts."""

from __future__ import annotations

import argparse
import hashlib
import importlib.util
import json
import logging
import os
import shutil
import sys
import tempfile
from dataclasses import dataclass, field
from multiprocessing import Pool
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

_SENTENCEPIECE_MISSING_MSG = (
    "The `sentencepiece` package is required for SentencePiece conversion. "
    "Install it with 'pip install sentencepiece protobuf'."
)

if importlib.util.find_spec("sentencepiece") is None:  # pragma: no cover - deterministic import guard
    raise ModuleNotFoundError(_SENTENCEPIECE_MISSING_MSG)

from spm_bpe.tokenizer.spm_common import (
    DUPLICATES_FILENAME,
    LOG_FILENAME,
    MERGES_FILENAME,
    SPACE_MARKER,
    SPECIALS_FILENAME,
    VOCAB_FILENAME,
    MalformedPieceError,
    PieceRecord,
    PieceType,
    byte_value,
    decode_byte_piece,
    escape,
)

logger = logging.getLogger(__name__)

MergePair = Tuple[str, str]

MODEL_FILENAME = "tokenizer.model"
_MODEL_SEARCH_SUBDIRS: Tuple[Path, ...] = (Path("."), Path("original"), Path("tokenizer"))


@dataclass
class ConversionSettings:
    """Runtime options controlling how artefacts are produced."""

    verbose_merges: bool = False
    pretty_vocab: bool = False
    workers: int = 1

    def __post_init__(self) -> None:
        if self.workers <= 0:
            raise ValueError("workers must be a positive integer")


def _safe_exists(path: Path) -> bool:
    """Return ``True`` if *path* exists, suppressing ``OSError`` failures."""

    try:
        return path.exists()
    except OSError:  # pragma: no cover - defensive
        return False


def _normalise_path(path: Path) -> Path:
    """Return an absolute version of *path* tolerant of exotic links."""

    path = path.expanduser()
    try:
        return path.resolve()
    except OSError:  # pragma: no cover - exercised on Windows
        return path.absolute()


# ---------------------------------------------------------------------------
# Model adapter
# ---------------------------------------------------------------------------


def _model_proto_class():
    try:
        from sentencepiece import sentencepiece_model_pb2
    except ModuleNotFoundError as exc:
        raise ModuleNotFoundError(
            "protobuf is required to decode SentencePiece models. "
            "Install it with 'pip install protobuf'."
        ) from exc
    return sentencepiece_model_pb2.ModelProto


def pieces_from_model_proto(model) -> Tuple[PieceRecord, ...]:
    """Flatten a ``ModelProto`` into ordered :class:`PieceRecord` values."""

    records: List[PieceRecord] = []
    for idx, piece in enumerate(model.pieces):
        try:
            piece_type = PieceType(int(piece.type))
        except ValueError as exc:
            raise MalformedPieceError(
                f"Piece {idx} ({piece.piece!r}) has unknown type {piece.type}"
            ) from exc
        records.append(
            PieceRecord(text=piece.piece, type=piece_type, id=idx, score=float(piece.score))
        )
    return tuple(records)


def load_pieces(path: Path) -> Tuple[PieceRecord, ...]:
    """Decode the serialized SentencePiece model stored at *path*."""

    model = _model_proto_class()()
    from google.protobuf.message import DecodeError

    try:
        model.ParseFromString(path.read_bytes())
    except DecodeError as exc:
        raise ValueError(f"Unable to decode SentencePiece model {path}: {exc}") from exc
    pieces = pieces_from_model_proto(model)
    if not pieces:
        raise ValueError(f"SentencePiece model {path} does not define any pieces")
    return pieces


# ---------------------------------------------------------------------------
# Vocabulary builder
# ---------------------------------------------------------------------------


@dataclass
class VocabEntry:
    """Canonical record for one representation string.

    ``text_id`` is the id of the textual or control piece resolving to
    ``representation``; ``byte_id`` the id of the byte-fallback piece. An
    entry with both set is shared by every id that produced it.
    """

    representation: str
    text_id: Optional[int] = None
    byte_id: Optional[int] = None

    @property
    def first_id(self) -> int:
        return self.text_id if self.text_id is not None else self.byte_id  # type: ignore[return-value]

    @property
    def is_textual(self) -> bool:
        return self.text_id is not None


@dataclass
class Vocabulary:
    by_id: List[VocabEntry]
    by_repr: Dict[str, VocabEntry] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.by_id)

    def text_id(self, representation: str) -> int:
        entry = self.by_repr[representation]
        if entry.text_id is None:
            raise KeyError(representation)
        return entry.text_id


@dataclass(frozen=True)
class DuplicateEntry:
    old_id: int
    new_id: int
    representation: str


def canonical_representation(piece: PieceRecord) -> str:
    if piece.is_byte:
        return decode_byte_piece(piece.text)
    if piece.is_control:
        return piece.text
    return piece.text.replace(SPACE_MARKER, " ")


def build_vocab(
    pieces: Sequence[PieceRecord],
) -> Tuple[Vocabulary, List[DuplicateEntry], List[str]]:
    """Build the canonical vocabulary for *pieces*.

    Pieces are processed in order. When a representation is seen again the
    existing entry gains the new id in the slot matching the piece kind, both
    ids alias that entry in ``by_id`` and a :class:`DuplicateEntry` is logged.
    """

    by_id: List[Optional[VocabEntry]] = [None] * len(pieces)
    vocab_lookup: Dict[str, VocabEntry] = {}
    duplicates: List[DuplicateEntry] = []
    specials: List[str] = []

    for idx, piece in enumerate(pieces):
        if piece.id != idx:
            raise MalformedPieceError(f"Piece at position {idx} declares id {piece.id}")
        try:
            representation = canonical_representation(piece)
        except MalformedPieceError as exc:
            raise MalformedPieceError(f"Piece {idx}: {exc}") from exc
        if piece.is_control:
            specials.append(representation)

        entry = vocab_lookup.get(representation)
        if entry is None:
            entry = VocabEntry(representation)
            if piece.is_byte:
                entry.byte_id = idx
            else:
                entry.text_id = idx
            vocab_lookup[representation] = entry
            by_id[idx] = entry
            continue

        existing_id = entry.first_id
        if piece.is_byte:
            entry.byte_id = idx
        else:
            entry.text_id = idx
        by_id[existing_id] = entry
        by_id[idx] = entry
        logger.debug(
            "Duplicate piece: old (%d): %r, dupe (%d): %r",
            existing_id,
            pieces[existing_id].text,
            idx,
            piece.text,
        )
        duplicates.append(DuplicateEntry(existing_id, idx, representation))

    vocab = Vocabulary(by_id=by_id, by_repr=vocab_lookup)  # type: ignore[arg-type]
    return vocab, duplicates, specials


# ---------------------------------------------------------------------------
# Merge synthesis
# ---------------------------------------------------------------------------


_WORKER_TEXTUAL: Tuple[str, ...] = ()
_WORKER_LOOKUP: Dict[str, int] = {}


def _textual_representations(vocab: Vocabulary) -> Tuple[str, ...]:
    ordered: Dict[str, None] = {}
    for entry in vocab.by_id:
        if entry.is_textual and entry.representation:
            ordered.setdefault(entry.representation, None)
    return tuple(ordered)


def _resolve_merges(
    textual: Sequence[str],
    lookup: Dict[str, int],
    start: int,
    stop: int,
) -> List[Tuple[MergePair, int]]:
    # ``textual`` holds each representation once, so every pair is visited once.
    resolved: List[Tuple[MergePair, int]] = []
    for left in textual[start:stop]:
        for right in textual:
            merged_id = lookup.get(left + right)
            if merged_id is not None:
                resolved.append(((left, right), merged_id))
    return resolved


def _init_merge_worker(textual: Tuple[str, ...], lookup: Dict[str, int]) -> None:
    global _WORKER_TEXTUAL, _WORKER_LOOKUP
    _WORKER_TEXTUAL = textual
    _WORKER_LOOKUP = lookup


def _resolve_merge_chunk(bounds: Tuple[int, int]) -> List[Tuple[MergePair, int]]:
    start, stop = bounds
    return _resolve_merges(_WORKER_TEXTUAL, _WORKER_LOOKUP, start, stop)


def _chunk_bounds(length: int, chunks: int) -> List[Tuple[int, int]]:
    size = max(1, -(-length // chunks))
    return [(start, min(start + size, length)) for start in range(0, length, size)]


def synthesize_merges(vocab: Vocabulary, *, workers: int = 1) -> Dict[MergePair, int]:
    """Rediscover the merge table implied by *vocab*.

    Every ordered pair of distinct textual representations is concatenated;
    when the result is itself a textual representation the pair is recorded
    against that representation's id. With ``workers > 1`` the outer loop is
    split across processes and results are joined in chunk order, so the
    table is identical to the serial one.
    """

    textual = _textual_representations(vocab)
    lookup = {
        representation: entry.text_id
        for representation, entry in vocab.by_repr.items()
        if entry.text_id is not None
    }

    if workers > 1 and len(textual) > 1:
        bounds = _chunk_bounds(len(textual), workers * 4)
        logger.debug(
            "Resolving %d textual pieces across %d workers (%d chunks)",
            len(textual),
            workers,
            len(bounds),
        )
        with Pool(
            processes=workers,
            initializer=_init_merge_worker,
            initargs=(textual, lookup),
        ) as pool:
            chunks = pool.map(_resolve_merge_chunk, bounds)
        resolved: Iterable[Tuple[MergePair, int]] = (item for chunk in chunks for item in chunk)
    else:
        resolved = _resolve_merges(textual, lookup, 0, len(textual))

    merge_table: Dict[MergePair, int] = {}
    for pair, merged_id in resolved:
        if pair in merge_table:
            continue
        left, right = pair
        logger.debug(
            "%r (%d) %r (%d) -> %r (%d)",
            left,
            lookup[left],
            right,
            lookup[right],
            left + right,
            merged_id,
        )
        merge_table[pair] = merged_id
    return merge_table


# ---------------------------------------------------------------------------
# Merge linearisation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MergeEntry:
    left: str
    left_id: int
    right: str
    right_id: int
    merged: str
    merged_id: int


def linearize_merges(vocab: Vocabulary, merge_table: Dict[MergePair, int]) -> List[MergeEntry]:
    """Order *merge_table* by merged id, dropping single character products."""

    entries: List[MergeEntry] = []
    for (left, right), merged_id in merge_table.items():
        merged = left + right
        if len(merged) == 1:
            continue
        entries.append(
            MergeEntry(
                left=left,
                left_id=vocab.text_id(left),
                right=right,
                right_id=vocab.text_id(right),
                merged=merged,
                merged_id=merged_id,
            )
        )
    entries.sort(key=lambda entry: (entry.merged_id, entry.left_id, entry.right_id))
    return entries


# ---------------------------------------------------------------------------
# Artefact rendering
# ---------------------------------------------------------------------------


def _vocab_key(vocab: Vocabulary, token_id: int) -> str:
    entry = vocab.by_id[token_id]
    if entry.text_id == token_id:
        return escape(entry.representation)
    if entry.byte_id is not None:
        return "0x%02x" % byte_value(entry.representation)
    return escape(entry.representation)


def render_vocab(vocab: Vocabulary, *, pretty: bool = False) -> str:
    prefix = " " if pretty else ""
    separator = ",\n" if pretty else ","
    body = separator.join(
        f'{prefix}"{_vocab_key(vocab, token_id)}":{prefix}{token_id}'
        for token_id in range(len(vocab))
    )
    if pretty:
        return "{\n" + body + "\n}\n"
    return "{" + body + "}"


def render_duplicates(duplicates: Sequence[DuplicateEntry]) -> str:
    lines = [
        f'  {{"old_id": {dupe.old_id}, "new_id": {dupe.new_id}, '
        f'"repr": "{escape(dupe.representation)}"}}'
        for dupe in duplicates
    ]
    if not lines:
        return "[\n]\n"
    return "[\n" + ",\n".join(lines) + "\n]\n"


def render_specials(specials: Sequence[str]) -> str:
    return "".join(f"{special}\n" for special in specials)


def render_merges(merges: Sequence[MergeEntry], *, verbose: bool = False) -> str:
    if verbose:
        records = [
            f'{{"left": "{escape(entry.left)}", "left_token": {entry.left_id}, '
            f'"right": "{escape(entry.right)}", "right_token": {entry.right_id}, '
            f'"merged": "{escape(entry.merged)}", "merged_token": {entry.merged_id}}}'
            for entry in merges
        ]
        if not records:
            return "[\n]\n"
        return "[\n  " + ",\n  ".join(records) + "\n]\n"
    pairs = ",".join(f'["{escape(entry.left)}","{escape(entry.right)}"]' for entry in merges)
    return "[" + pairs + "\n]\n"


def _write_artifact(path: Path, text: str) -> bytes:
    """Atomically replace *path* with *text*; returns the bytes written."""

    payload = text.encode("utf-8")
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(payload)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise
    return payload


# ---------------------------------------------------------------------------
# Conversion summary
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ArtifactInfo:
    """Description of one artefact written during conversion."""

    name: str
    path: Path
    bytes: int
    sha256: str


@dataclass(frozen=True)
class ConversionSummary:
    """Summary of artefacts written by :func:`convert`."""

    source: Path
    output: Path
    model_path: Path
    piece_count: int
    representation_count: int
    duplicate_count: int
    special_count: int
    merge_count: int
    artifacts: Tuple[ArtifactInfo, ...]
    log_path: Path | None

    @property
    def total_bytes(self) -> int:
        return sum(info.bytes for info in self.artifacts)

    def to_dict(self) -> Dict[str, object]:
        """Serialise the summary into JSON-serialisable primitives."""

        return {
            "source": str(self.source),
            "output": str(self.output),
            "model_path": str(self.model_path),
            "log_path": str(self.log_path) if self.log_path is not None else None,
            "piece_count": self.piece_count,
            "representation_count": self.representation_count,
            "duplicate_count": self.duplicate_count,
            "special_count": self.special_count,
            "merge_count": self.merge_count,
            "artifacts": [
                {
                    "name": info.name,
                    "path": str(info.path),
                    "bytes": info.bytes,
                    "sha256": info.sha256,
                }
                for info in self.artifacts
            ],
            "total_bytes": self.total_bytes,
        }


def format_summary(summary: ConversionSummary) -> str:
    """Return a human-friendly multi-line summary of conversion outputs."""

    header = "SentencePiece BPE Conversion Summary"
    lines = [header, "=" * len(header)]
    lines.append(f"Source : {summary.source}")
    lines.append(f"Model  : {summary.model_path}")
    lines.append(f"Output : {summary.output}")
    if summary.log_path:
        lines.append(f"Log file: {summary.log_path}")

    lines.append("")
    lines.append(
        f"Pieces: {summary.piece_count} | Representations: {summary.representation_count}"
        f" | Duplicates: {summary.duplicate_count} | Specials: {summary.special_count}"
        f" | Merges: {summary.merge_count}"
    )

    lines.append("")
    lines.append("Artefacts:")
    if summary.artifacts:
        name_width = max(len(info.name) for info in summary.artifacts)
        header_row = f"  {'Name'.ljust(name_width)}     Bytes  SHA-256"
        lines.append(header_row)
        lines.append("  " + "-" * (len(header_row) - 2))
        for info in summary.artifacts:
            lines.append(f"  {info.name.ljust(name_width)}  {info.bytes:>8}  {info.sha256[:16]}")
    else:
        lines.append("  <no artefacts written>")

    lines.append("")
    lines.append(
        f"Total artefacts: {len(summary.artifacts)} | Total payload bytes: {summary.total_bytes}"
    )
    return "\n".join(lines)


def render_summary(summary: ConversionSummary, *, format: str = "table") -> str:
    """Serialise ``summary`` into the requested format.

    Parameters
    ----------
    summary:
        The conversion summary produced by :func:`convert`.
    format:
        Either ``"table"`` for the human-readable report or ``"json"`` for a
        machine-friendly representation. The check is case-insensitive.
    """

    normalized = format.lower()
    if normalized == "table":
        return format_summary(summary)
    if normalized == "json":
        return json.dumps(summary.to_dict(), indent=2, sort_keys=True)
    raise ValueError(f"Unsupported summary format: {format}")


# ---------------------------------------------------------------------------
# Conversion driver
# ---------------------------------------------------------------------------


def convert(
    source: Path,
    output: Path,
    *,
    settings: ConversionSettings | None = None,
    verbose: bool = False,
) -> ConversionSummary:
    """Convert a SentencePiece model into vocabulary, merge and special artefacts.

    ``source`` may be a model file or a directory; directories are probed for
    ``tokenizer.model`` directly and in the ``original/`` and ``tokenizer/``
    subdirectories used by Hugging Face checkpoints. All four artefacts are
    rendered in memory before the first one is written.
    """

    settings = settings or ConversionSettings()
    source = _normalise_path(source)
    output = _normalise_path(output)

    try:
        created_output_dir = not output.exists()
    except OSError:
        created_output_dir = True
    output.mkdir(parents=True, exist_ok=True)

    if verbose and not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO)

    log_path = output / LOG_FILENAME
    file_handler: logging.Handler | None = None
    previous_level = logger.level

    cleanup_on_failure = False

    try:
        file_handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)

        def log_verbose(message: str, *args: object) -> None:
            if verbose:
                logger.info(message, *args)
            else:
                logger.debug(message, *args)

        def log_notice(message: str, *args: object) -> None:
            logger.info(message, *args)

        log_notice("Writing conversion log to %s", log_path)
        log_notice("Resolved source path: %s", source)
        log_notice("Resolved output path: %s", output)

        def find_model() -> Path:
            if source.is_file():
                return source
            for subdir in _MODEL_SEARCH_SUBDIRS:
                candidate = source / subdir / MODEL_FILENAME
                log_verbose("Probing %s", candidate)
                if _safe_exists(candidate):
                    return candidate
            message = f"Unable to locate {MODEL_FILENAME!r}; searched: {source}"
            logger.error(message)
            raise FileNotFoundError(message)

        def _convert_inner() -> ConversionSummary:
            model_path = find_model()
            log_notice("Reading SentencePiece model from %s", model_path)
            pieces = load_pieces(model_path)
            log_verbose("Decoded %d pieces", len(pieces))

            log_verbose("Building vocabulary")
            vocab, duplicates, specials = build_vocab(pieces)
            log_verbose(
                "Vocabulary holds %d representations (%d duplicates, %d specials)",
                len(vocab.by_repr),
                len(duplicates),
                len(specials),
            )

            log_verbose("Synthesising merge table (workers=%d)", settings.workers)
            merge_table = synthesize_merges(vocab, workers=settings.workers)
            merges = linearize_merges(vocab, merge_table)
            log_verbose("Linearised %d merges from %d pairs", len(merges), len(merge_table))

            rendered = (
                (VOCAB_FILENAME, render_vocab(vocab, pretty=settings.pretty_vocab)),
                (DUPLICATES_FILENAME, render_duplicates(duplicates)),
                (SPECIALS_FILENAME, render_specials(specials)),
                (MERGES_FILENAME, render_merges(merges, verbose=settings.verbose_merges)),
            )

            artifacts: List[ArtifactInfo] = []
            for name, text in rendered:
                path = output / name
                payload = _write_artifact(path, text)
                log_verbose("Wrote %s (%d bytes)", path, len(payload))
                artifacts.append(
                    ArtifactInfo(
                        name=name,
                        path=path,
                        bytes=len(payload),
                        sha256=hashlib.sha256(payload).hexdigest(),
                    )
                )

            summary = ConversionSummary(
                source=source,
                output=output,
                model_path=model_path,
                piece_count=len(pieces),
                representation_count=len(vocab.by_repr),
                duplicate_count=len(duplicates),
                special_count=len(specials),
                merge_count=len(merges),
                artifacts=tuple(artifacts),
                log_path=log_path,
            )
            for line in format_summary(summary).splitlines():
                log_verbose(line)
            return summary

        try:
            return _convert_inner()
        except ModuleNotFoundError:
            cleanup_on_failure = created_output_dir
            raise
        except (ValueError, RuntimeError, FileNotFoundError, OSError) as exc:
            logger.exception("Conversion failed: %s", exc)
            raise
    finally:
        if file_handler is not None:
            logger.removeHandler(file_handler)
            file_handler.close()
        if previous_level:
            logger.setLevel(previous_level)
        else:
            logger.setLevel(logging.NOTSET)

        if cleanup_on_failure:
            try:
                shutil.rmtree(output)
            except OSError:
                logger.debug("Failed to remove output directory after error: %s", output)


# ---------------------------------------------------------------------------
# Command line interface
# ---------------------------------------------------------------------------


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Convert a SentencePiece model into BPE artefacts: vocab.json, "
            "merges.json, specials.txt and duplicates.json."
        ),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--source",
        type=Path,
        required=True,
        help="Path to a tokenizer.model file or a directory containing one",
    )
    parser.add_argument(
        "--output",
        type=Path,
        required=True,
        help="Directory where the converted artefacts should be written",
    )
    parser.add_argument(
        "--verbose-merges",
        action="store_true",
        help="Write merges as objects carrying token ids instead of [left, right] pairs",
    )
    parser.add_argument(
        "--pretty-vocab",
        action="store_true",
        help="Write one vocabulary entry per line",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of processes used to synthesise the merge table",
    )
    parser.add_argument(
        "--verbose",
        dest="verbose",
        action="store_true",
        default=None,
        help="Enable verbose logging (can also set SPM_TRANSFER_VERBOSE=1)",
    )
    parser.add_argument(
        "--quiet",
        dest="verbose",
        action="store_false",
        help="Disable verbose logging",
    )
    parser.add_argument(
        "--no-summary",
        dest="print_summary",
        action="store_false",
        help="Do not print the conversion summary table",
    )
    parser.add_argument(
        "--summary-format",
        choices=("table", "json"),
        default="table",
        help="Format to use when rendering the conversion summary",
    )
    parser.add_argument(
        "--summary-output",
        type=Path,
        help="Optional path to write the conversion summary to",
    )
    parser.set_defaults(print_summary=True)

    args = parser.parse_args(argv)

    args.source = args.source.expanduser()
    args.output = args.output.expanduser()
    if args.summary_output is not None:
        args.summary_output = args.summary_output.expanduser()

    if args.verbose is None:
        env_value = os.environ.get("SPM_TRANSFER_VERBOSE")
        if env_value is None:
            args.verbose = False
        else:
            args.verbose = env_value.lower() not in {"", "0", "false", "no"}

    if args.workers <= 0:
        parser.error("--workers must be a positive integer")

    args.settings = ConversionSettings(
        verbose_merges=args.verbose_merges,
        pretty_vocab=args.pretty_vocab,
        workers=args.workers,
    )
    return args


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.INFO)

    try:
        summary = convert(
            args.source,
            args.output,
            settings=args.settings,
            verbose=args.verbose,
        )
    except ModuleNotFoundError as exc:
        message = str(exc) or _SENTENCEPIECE_MISSING_MSG
        print(
            f"spm_transfer: {message} No artefacts were written to {args.output}.",
            file=sys.stderr,
        )
        raise SystemExit(1) from exc
    except (ValueError, OSError) as exc:
        message = str(exc) or f"Conversion failed with {type(exc).__name__}"
        print(f"spm_transfer: {message}", file=sys.stderr)
        raise SystemExit(1) from exc

    rendered = render_summary(summary, format=args.summary_format)

    if args.summary_output is not None:
        summary_path = args.summary_output
        summary_path.parent.mkdir(parents=True, exist_ok=True)
        text = rendered if rendered.endswith("\n") else rendered + "\n"
        summary_path.write_text(text, encoding="utf-8")

    if args.print_summary:
        print(rendered)


__all__ = [
    "ArtifactInfo",
    "ConversionSettings",
    "ConversionSummary",
    "DuplicateEntry",
    "MergeEntry",
    "VocabEntry",
    "Vocabulary",
    "build_vocab",
    "canonical_representation",
    "convert",
    "format_summary",
    "linearize_merges",
    "load_pieces",
    "main",
    "pieces_from_model_proto",
    "render_duplicates",
    "render_merges",
    "render_specials",
    "render_summary",
    "render_vocab",
    "synthesize_merges",
]


if __name__ == "__main__":
    main()
