"""Command line tools converting SentencePiece models into BPE artefacts."""

from .spm_quickstart import main as quickstart_main
from .spm_transfer import convert
from .spm_transfer import main as transfer_main

__all__ = ["convert", "quickstart_main", "transfer_main"]
