from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
SRC = ROOT / "src"
if SRC.exists() and str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from spm_bpe.tokenizer.spm_common import MalformedPieceError, PieceRecord, PieceType
from spm_bpe.tools import spm_transfer
from tests.tokenizer_fixtures import make_pieces, sample_pieces

N = PieceType.NORMAL
C = PieceType.CONTROL
B = PieceType.BYTE


def test_build_vocab_end_to_end_scenario() -> None:
    pieces = make_pieces([("▁", N), ("a", N), ("▁a", N), ("<0x41>", B)])

    vocab, duplicates, specials = spm_transfer.build_vocab(pieces)

    assert duplicates == []
    assert specials == []
    assert [entry.representation for entry in vocab.by_id] == [" ", "a", " a", "A"]
    assert vocab.by_id[3].byte_id == 3
    assert vocab.by_id[3].text_id is None
    assert spm_transfer.render_vocab(vocab) == '{" ":0,"a":1," a":2,"0x41":3}'

    merges = spm_transfer.linearize_merges(vocab, spm_transfer.synthesize_merges(vocab))

    assert [(entry.left, entry.right, entry.merged_id) for entry in merges] == [(" ", "a", 2)]
    assert merges[0] == spm_transfer.MergeEntry(" ", 0, "a", 1, " a", 2)


def test_build_vocab_control_then_normal_collision() -> None:
    spec = [(f"p{idx}", N) for idx in range(10)]
    spec[5] = ("X", C)
    spec[9] = ("X", N)
    pieces = make_pieces(spec)

    vocab, duplicates, specials = spm_transfer.build_vocab(pieces)

    assert duplicates == [spm_transfer.DuplicateEntry(old_id=5, new_id=9, representation="X")]
    assert specials == ["X"]
    assert vocab.by_id[5] is vocab.by_id[9]
    assert vocab.by_id[9].text_id == 9
    assert vocab.by_repr["X"] is vocab.by_id[5]


def test_build_vocab_byte_and_text_collision_aliases_both_ids() -> None:
    vocab, duplicates, _ = spm_transfer.build_vocab(sample_pieces())

    entry = vocab.by_repr["A"]
    assert entry.byte_id == 3
    assert entry.text_id == 11
    assert vocab.by_id[3] is entry
    assert vocab.by_id[11] is entry
    assert duplicates == [spm_transfer.DuplicateEntry(3, 11, "A")]


def test_build_vocab_text_then_byte_collision_reports_text_id() -> None:
    pieces = make_pieces([("A", N), ("b", N), ("<0x41>", B)])

    vocab, duplicates, _ = spm_transfer.build_vocab(pieces)

    assert duplicates == [spm_transfer.DuplicateEntry(0, 2, "A")]
    # The byte piece's own slot reports the merged entry.
    assert vocab.by_id[2] is vocab.by_id[0]
    assert vocab.by_id[2].text_id == 0
    assert vocab.by_id[2].byte_id == 2
    assert spm_transfer.render_vocab(vocab) == '{"A":0,"b":1,"0x41":2}'


def test_build_vocab_repeated_text_overwrites_slot() -> None:
    pieces = make_pieces([("▁x", N), (" x", N), ("▁x", N)])

    vocab, duplicates, _ = spm_transfer.build_vocab(pieces)

    assert [(d.old_id, d.new_id) for d in duplicates] == [(0, 1), (1, 2)]
    assert vocab.by_repr[" x"].text_id == 2
    assert vocab.by_id[0] is vocab.by_id[1] is vocab.by_id[2]


def test_build_vocab_keeps_marker_in_control_pieces() -> None:
    pieces = make_pieces([("<▁ctrl>", C), ("▁", N)])

    vocab, _, specials = spm_transfer.build_vocab(pieces)

    assert specials == ["<▁ctrl>"]
    assert "<▁ctrl>" in vocab.by_repr
    assert " " in vocab.by_repr


def test_build_vocab_rejects_malformed_byte_piece() -> None:
    pieces = make_pieces([("a", N), ("<0xGG>", B)])

    with pytest.raises(MalformedPieceError) as excinfo:
        spm_transfer.build_vocab(pieces)

    assert "Piece 1" in str(excinfo.value)


def test_build_vocab_rejects_out_of_order_ids() -> None:
    pieces = [PieceRecord("a", N, 1), PieceRecord("b", N, 0)]

    with pytest.raises(MalformedPieceError):
        spm_transfer.build_vocab(pieces)


def test_build_vocab_id_bijection() -> None:
    pieces = sample_pieces()
    vocab, _, _ = spm_transfer.build_vocab(pieces)

    assert len(vocab) == len(pieces)
    for token_id, entry in enumerate(vocab.by_id):
        assert token_id in (entry.text_id, entry.byte_id)
        assert vocab.by_repr[entry.representation] is entry


def test_build_vocab_logs_duplicates(caplog) -> None:
    caplog.set_level("DEBUG", logger=spm_transfer.logger.name)

    spm_transfer.build_vocab(sample_pieces())

    assert "Duplicate piece: old (3)" in caplog.text


def test_synthesize_merges_sample_table() -> None:
    vocab, _, _ = spm_transfer.build_vocab(sample_pieces())

    table = spm_transfer.synthesize_merges(vocab)

    assert table == {
        (" ", "a"): 8,
        (" ", "ab"): 10,
        ("a", "b"): 9,
        (" a", "b"): 10,
    }
    assert list(table) == [(" ", "a"), (" ", "ab"), ("a", "b"), (" a", "b")]


def test_synthesize_merges_ignores_byte_only_entries() -> None:
    pieces = make_pieces([("<0x61>", B), ("<0x62>", B), ("ab", N)])
    vocab, _, _ = spm_transfer.build_vocab(pieces)

    assert spm_transfer.synthesize_merges(vocab) == {}


def test_synthesize_merges_includes_self_pairs() -> None:
    pieces = make_pieces([("a", N), ("aa", N), ("aaaa", N)])
    vocab, _, _ = spm_transfer.build_vocab(pieces)

    table = spm_transfer.synthesize_merges(vocab)

    assert table[("a", "a")] == 1
    assert table[("aa", "aa")] == 2
    assert ("a", "aa") not in table


def test_synthesize_merges_skips_empty_pieces() -> None:
    pieces = make_pieces([("", N), ("a", N), ("aa", N)])
    vocab, _, _ = spm_transfer.build_vocab(pieces)

    table = spm_transfer.synthesize_merges(vocab)

    assert table == {("a", "a"): 2}


def test_synthesize_merges_parallel_matches_serial() -> None:
    letters = "abcde"
    spec = [(letter, N) for letter in letters]
    spec += [(left + right, N) for left in letters for right in letters if left != right]
    spec += [("▁" + letter, N) for letter in letters] + [("▁", N), ("<0x41>", B), ("A", N)]
    vocab, _, _ = spm_transfer.build_vocab(make_pieces(spec))

    serial = spm_transfer.synthesize_merges(vocab)
    parallel = spm_transfer.synthesize_merges(vocab, workers=2)

    assert serial
    assert list(parallel.items()) == list(serial.items())


def test_linearize_merges_orders_by_merged_id() -> None:
    vocab, _, _ = spm_transfer.build_vocab(sample_pieces())

    merges = spm_transfer.linearize_merges(vocab, spm_transfer.synthesize_merges(vocab))

    assert [(entry.left, entry.right) for entry in merges] == [
        (" ", "a"),
        ("a", "b"),
        (" ", "ab"),
        (" a", "b"),
    ]
    merged_ids = [entry.merged_id for entry in merges]
    assert merged_ids == sorted(merged_ids)
    assert len({(entry.left, entry.right) for entry in merges}) == len(merges)
    assert merges[2] == spm_transfer.MergeEntry(" ", 5, "ab", 9, " ab", 10)


def test_linearize_merges_drops_single_character_products() -> None:
    pieces = make_pieces([("", N), ("a", N), ("b", N), ("ab", N)])
    vocab, _, _ = spm_transfer.build_vocab(pieces)
    table = {("", "a"): 1, ("a", "b"): 3}

    merges = spm_transfer.linearize_merges(vocab, table)

    assert [(entry.left, entry.right) for entry in merges] == [("a", "b")]
    assert all(len(entry.merged) > 1 for entry in merges)


def test_render_vocab_distinguishes_byte_and_text_slots() -> None:
    vocab, _, _ = spm_transfer.build_vocab(sample_pieces())

    rendered = spm_transfer.render_vocab(vocab)

    assert rendered == (
        '{"<unk>":0,"<s>":1,"</s>":2,"0x41":3,"0x0a":4," ":5,"a":6,"b":7,'
        '" a":8,"ab":9," ab":10,"A":11}'
    )
    assert list(json.loads(rendered).values()) == list(range(12))


def test_render_vocab_pretty_layout() -> None:
    vocab, _, _ = spm_transfer.build_vocab(make_pieces([("a", N), ("\t", N)]))

    assert spm_transfer.render_vocab(vocab, pretty=True) == '{\n "a": 0,\n "\\t": 1\n}\n'


def test_render_vocab_text_collision_keeps_both_ids() -> None:
    vocab, _, _ = spm_transfer.build_vocab(make_pieces([("X", C), ("X", N)]))

    assert spm_transfer.render_vocab(vocab) == '{"X":0,"X":1}'


def test_render_vocab_high_byte_pieces() -> None:
    vocab, _, _ = spm_transfer.build_vocab(make_pieces([("<0xE9>", B), ("é", N)]))

    assert spm_transfer.render_vocab(vocab) == '{"0xe9":0,"é":1}'


def test_render_duplicates() -> None:
    duplicates = [
        spm_transfer.DuplicateEntry(5, 9, "X"),
        spm_transfer.DuplicateEntry(3, 11, '"'),
    ]

    rendered = spm_transfer.render_duplicates(duplicates)

    assert rendered == (
        '[\n  {"old_id": 5, "new_id": 9, "repr": "X"},\n'
        '  {"old_id": 3, "new_id": 11, "repr": "\\""}\n]\n'
    )
    assert json.loads(rendered)[1] == {"old_id": 3, "new_id": 11, "repr": '"'}
    assert json.loads(spm_transfer.render_duplicates([])) == []


def test_render_specials() -> None:
    assert spm_transfer.render_specials(["<s>", "</s>"]) == "<s>\n</s>\n"
    assert spm_transfer.render_specials(["<multi\nline>"]) == "<multi\nline>\n"
    assert spm_transfer.render_specials([]) == ""


def test_render_merges_compact_and_verbose() -> None:
    merges = [
        spm_transfer.MergeEntry(" ", 5, "a", 6, " a", 8),
        spm_transfer.MergeEntry("a", 6, '"', 7, 'a"', 9),
    ]

    compact = spm_transfer.render_merges(merges)
    verbose = spm_transfer.render_merges(merges, verbose=True)

    assert compact == '[[" ","a"],["a","\\""]\n]\n'
    assert json.loads(compact) == [[" ", "a"], ["a", '"']]
    assert json.loads(verbose) == [
        {"left": " ", "left_token": 5, "right": "a", "right_token": 6, "merged": " a", "merged_token": 8},
        {"left": "a", "left_token": 6, "right": '"', "right_token": 7, "merged": 'a"', "merged_token": 9},
    ]
    assert json.loads(spm_transfer.render_merges([])) == []
    assert json.loads(spm_transfer.render_merges([], verbose=True)) == []


def test_conversion_settings_rejects_non_positive_workers() -> None:
    with pytest.raises(ValueError):
        spm_transfer.ConversionSettings(workers=0)
