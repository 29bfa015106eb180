"""
Test DJI proto-marker fingerprinting on synthetic clips.
"""
import os
import random
import tempfile
import shutil

from cardprobe.markers import (
    MarkerResult, MarkerTally, classify, classify_buffers, classify_many, tally,
)

MiB = 1024 * 1024

FLIP = b"pb_file:dvtm_flip.proto"
O4P = b"pb_file:dvtm_O4P.proto"


def write(tmpdir, name, data):
    path = os.path.join(tmpdir, name)
    with open(path, "wb") as f:
        f.write(data)
    return path


def main():
    print("=" * 60)
    print("  cardprobe — Marker Scanner Test Suite")
    print("=" * 60)
    print()

    test_raw_tier()
    test_text_fallback()
    test_marker_in_random_data()
    test_head_and_tail_windows()
    test_majority_vote()
    test_result_names()
    test_degenerate_files()

    print()
    print("=" * 60)
    print("  ALL TESTS PASSED ✅")
    print("=" * 60)


def test_raw_tier():
    """Case-insensitive byte search, O4 Pro checked before Flip."""
    print("── Test: raw marker tier ──")
    assert classify_buffers([b"\x00\x01" + FLIP + b"\xff"]) is MarkerResult.FLIP
    assert classify_buffers([b"xx" + O4P.upper()]) is MarkerResult.O4_PRO
    assert classify_buffers([b"PB_File:DVTM_o4p.Proto"]) is MarkerResult.O4_PRO

    # Both present: O4 Pro wins regardless of position or window
    assert classify_buffers([FLIP + O4P]) is MarkerResult.O4_PRO
    assert classify_buffers([FLIP, O4P]) is MarkerResult.O4_PRO

    assert classify_buffers([b"pb_file:dvtm_wm170.proto"]) is MarkerResult.UNKNOWN
    assert classify_buffers([]) is MarkerResult.UNKNOWN
    assert classify_buffers([b"", b""]) is MarkerResult.UNKNOWN
    print("  ✅ raw marker tier: PASS")


def test_text_fallback():
    """NUL-interleaved markers are recovered from the stripped text."""
    print("── Test: text fallback tier ──")
    assert classify_buffers([b"pb_file:dvtm_\x00flip.proto"]) is MarkerResult.FLIP
    assert classify_buffers([b"\x00d\x00v\x00t\x00m\x00_\x00O\x004\x00P"]) is MarkerResult.O4_PRO
    assert classify_buffers([b"\xc3\x28 junk FLIP.PROTO"]) is MarkerResult.FLIP
    # Fragments on their own are enough
    assert classify_buffers([b"...O4P.proto..."]) is MarkerResult.O4_PRO
    # Raw hit for Flip beats a fallback-only hit for O4 Pro
    assert classify_buffers([FLIP + b"dvtm_\x00O4P"]) is MarkerResult.FLIP
    print("  ✅ text fallback tier: PASS")


def test_marker_in_random_data():
    """Marker in any letter case inside 10 MB of random bytes."""
    print("── Test: marker in random data ──")
    tmpdir = tempfile.mkdtemp(prefix="test_marker_")
    try:
        rng = random.Random(1234)
        blob = bytearray(rng.randbytes(10 * MiB))
        at = rng.randrange(len(blob) - len(O4P))
        blob[at:at + len(O4P)] = b"Pb_FiLe:DvTm_o4p.PrOtO"
        path = write(tmpdir, "DJI_0001.MP4", bytes(blob))

        assert classify(path) is MarkerResult.O4_PRO
        print("  ✅ marker in random data: PASS")
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)


def test_head_and_tail_windows():
    """Only the first and last `cap` bytes are searched."""
    print("── Test: head and tail windows ──")
    tmpdir = tempfile.mkdtemp(prefix="test_windows_")
    try:
        filler = b"\x00" * 20000

        path = write(tmpdir, "head.mov", FLIP + filler)
        assert classify(path, cap=4096) is MarkerResult.FLIP

        path = write(tmpdir, "tail.mov", filler + O4P)
        assert classify(path, cap=4096) is MarkerResult.O4_PRO

        # Between the two windows: invisible
        path = write(tmpdir, "middle.mov", filler + FLIP + filler)
        assert classify(path, cap=4096) is MarkerResult.UNKNOWN
        assert classify(path) is MarkerResult.FLIP
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)
    print("  ✅ head and tail windows: PASS")


def test_majority_vote():
    """classify_many returns the strict majority vendor."""
    print("── Test: majority vote ──")
    tmpdir = tempfile.mkdtemp(prefix="test_vote_")
    try:
        flip_a = write(tmpdir, "a.mp4", b"\x00" * 64 + FLIP)
        flip_b = write(tmpdir, "b.MP4", FLIP + b"\x00" * 64)
        o4p = write(tmpdir, "c.mov", O4P)
        plain = write(tmpdir, "d.m4v", b"\x00" * 128)
        photo = write(tmpdir, "e.jpg", O4P)
        srt = write(tmpdir, "a.srt", O4P)

        assert classify_many([flip_a, flip_b, o4p]) is MarkerResult.FLIP
        assert classify_many([flip_a, o4p]) is MarkerResult.UNKNOWN
        assert classify_many([]) is MarkerResult.UNKNOWN
        assert classify_many([plain]) is MarkerResult.UNKNOWN
        assert classify_many([o4p, plain, plain]) is MarkerResult.O4_PRO

        # Only video containers vote
        assert classify_many([flip_a, photo, srt]) is MarkerResult.FLIP

        counts = tally([flip_a, flip_b, o4p, plain, photo, srt])
        assert counts == MarkerTally(flip=2, o4_pro=1, unknown=1, skipped=2)
        assert counts.scanned == 4
        assert counts.verdict is MarkerResult.FLIP

        # Missing files count as unknown, never abort the batch
        missing = os.path.join(tmpdir, "gone.mp4")
        assert classify_many([missing, o4p]) is MarkerResult.O4_PRO
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)
    print("  ✅ majority vote: PASS")


def test_result_names():
    print("── Test: result names ──")
    assert MarkerResult.FLIP.display_name == "DJI Flip"
    assert MarkerResult.FLIP.folder_name == "DJIFlip"
    assert MarkerResult.O4_PRO.display_name == "DJI O4 Pro"
    assert MarkerResult.O4_PRO.folder_name == "DJI04"
    assert MarkerResult.UNKNOWN.display_name == "Unknown Device"
    assert MarkerResult.UNKNOWN.folder_name == "Unknown"
    assert MarkerTally().verdict is MarkerResult.UNKNOWN
    print("  ✅ result names: PASS")


def test_degenerate_files():
    print("── Test: degenerate files ──")
    tmpdir = tempfile.mkdtemp(prefix="test_marker_edge_")
    try:
        empty = write(tmpdir, "empty.mp4", b"")
        tiny = write(tmpdir, "tiny.mp4", b"dvtm")
        assert classify(empty) is MarkerResult.UNKNOWN
        assert classify(tiny) is MarkerResult.UNKNOWN
        assert classify(os.path.join(tmpdir, "missing.mp4")) is MarkerResult.UNKNOWN
        assert classify(tmpdir) is MarkerResult.UNKNOWN
        assert classify_many([empty, tiny]) is MarkerResult.UNKNOWN
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)
    print("  ✅ degenerate files: PASS")


if __name__ == "__main__":
    main()
