"""Conversion of SentencePiece models into BPE vocabulary and merge artefacts."""
