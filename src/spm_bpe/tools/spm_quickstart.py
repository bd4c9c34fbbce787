"""Quickstart helper for converting a published SentencePiece tokenizer.

This module downloads ``tokenizer.model`` from a Hugging Face Hub repository
and converts it into BPE artefacts with :mod:`spm_bpe.tools.spm_transfer`. By
default the helper reuses the Hugging Face cache; a local directory can be
requested via ``--download-dir`` when needed.
"""

from __future__ import annotations

import argparse
import shutil
import sys
from pathlib import Path
from typing import Iterable, Optional, Sequence

from . import spm_transfer

DEFAULT_REPO_ID = "hf-internal-testing/llama-tokenizer"
DEFAULT_FILENAME = spm_transfer.MODEL_FILENAME
DEFAULT_OUTPUT_DIR = Path("spm-bpe-artefacts")


class QuickstartError(RuntimeError):
    """Raised when the quickstart pipeline encounters a fatal error."""


def _download_tokenizer(
    repo_id: str,
    filename: str,
    revision: Optional[str],
    subfolder: Optional[str],
    download_dir: Optional[Path],
) -> Path:
    try:
        from huggingface_hub import hf_hub_download
    except ImportError as exc:  # pragma: no cover - defensive
        raise QuickstartError(
            "huggingface_hub is required to download tokenizers. Install it with"
            " `pip install huggingface-hub`."
        ) from exc

    kwargs = {}
    if subfolder:
        kwargs["subfolder"] = subfolder
    if download_dir is not None:
        download_dir = download_dir.expanduser()
        download_dir.mkdir(parents=True, exist_ok=True)
        print(f"Downloading {repo_id}/{filename} to {download_dir}...")
        kwargs["local_dir"] = str(download_dir)
    else:
        print(f"Downloading {repo_id}/{filename} using the Hugging Face cache...")

    try:
        model_path = hf_hub_download(
            repo_id=repo_id,
            filename=filename,
            revision=revision,
            **kwargs,
        )
    except Exception as exc:
        raise QuickstartError(f"Unable to download {filename} from {repo_id}: {exc}") from exc
    return Path(model_path)


def _convert_tokenizer(
    model_path: Path,
    output_dir: Path,
    *,
    settings: spm_transfer.ConversionSettings,
) -> spm_transfer.ConversionSummary:
    model_path = model_path.expanduser().resolve()
    if not model_path.exists():
        raise QuickstartError(f"Tokenizer model {model_path} does not exist")

    output_dir = output_dir.expanduser().resolve()
    print(f"Converting tokenizer at {model_path} -> {output_dir} (workers={settings.workers})")
    try:
        return spm_transfer.convert(model_path, output_dir, settings=settings)
    except (ValueError, OSError) as exc:
        raise QuickstartError(f"Conversion failed: {exc}") from exc


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Download a SentencePiece tokenizer and convert it to BPE artefacts",
    )
    parser.add_argument(
        "--repo-id",
        default=DEFAULT_REPO_ID,
        help="Hugging Face repository containing the tokenizer",
    )
    parser.add_argument(
        "--filename",
        default=DEFAULT_FILENAME,
        help="Name of the SentencePiece model file inside the repository",
    )
    parser.add_argument(
        "--subfolder",
        default=None,
        help="Optional repository subfolder holding the model file",
    )
    parser.add_argument(
        "--revision",
        default=None,
        help="Optional revision to download",
    )
    parser.add_argument(
        "--download-dir",
        type=Path,
        default=None,
        help=(
            "Directory to place the downloaded model in. By default the helper"
            " reuses the Hugging Face cache."
        ),
    )
    parser.add_argument(
        "--tokenizer-file",
        type=Path,
        help="Use an existing tokenizer.model instead of downloading",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        help="Directory to write the artefacts into",
    )
    parser.add_argument(
        "--verbose-merges",
        action="store_true",
        help="Write merges with token ids",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of processes used to synthesise the merge table",
    )
    parser.add_argument(
        "--force-clean",
        action="store_true",
        help=(
            "Delete any existing download/output directories before running."
            " The download directory is only removed when --download-dir is set."
        ),
    )
    args = parser.parse_args(argv)
    if args.workers <= 0:
        parser.error("--workers must be a positive integer")
    return args


def _prepare_directories(args: argparse.Namespace) -> tuple[Optional[Path], Path]:
    download_dir = args.download_dir
    output_dir = args.output_dir if args.output_dir is not None else DEFAULT_OUTPUT_DIR

    if args.force_clean:
        if (
            args.tokenizer_file is None
            and download_dir is not None
            and download_dir.exists()
        ):
            shutil.rmtree(download_dir)
        if output_dir.exists():
            shutil.rmtree(output_dir)

    return download_dir, output_dir


def main(argv: Optional[Iterable[str]] = None) -> int:
    try:
        args = _parse_args(list(argv) if argv is not None else None)
        download_dir, output_dir = _prepare_directories(args)

        if args.tokenizer_file is not None:
            model_path = Path(args.tokenizer_file).expanduser().resolve()
        else:
            model_path = _download_tokenizer(
                args.repo_id,
                args.filename,
                args.revision,
                args.subfolder,
                download_dir,
            )

        summary = _convert_tokenizer(
            model_path,
            output_dir,
            settings=spm_transfer.ConversionSettings(
                verbose_merges=args.verbose_merges,
                workers=args.workers,
            ),
        )

        print(f"BPE artefacts written to {summary.output}")
        print(f"{summary.merge_count} merges reconstructed from {summary.piece_count} pieces")
        return 0
    except QuickstartError as exc:
        print(f"spm_quickstart: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
