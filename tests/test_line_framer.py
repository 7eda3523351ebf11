from __future__ import annotations

import pytest

from engine_bridge.framing import LineFramer

STREAM = (
    b"id name FakeEngine\r\n"
    b"uciok\n"
    b"\n"
    b"   \n"
    b"info depth 1 score cp -12 pv e7e5\n"
    b"info string caf\xc3\xa9\n"
    b"bestmove e2e4 ponder e7e5\n"
)

EXPECTED = [
    "id name FakeEngine",
    "uciok",
    "info depth 1 score cp -12 pv e7e5",
    "info string café",
    "bestmove e2e4 ponder e7e5",
]


def _feed_all(chunks: list[bytes]) -> list[str]:
    framer = LineFramer()
    lines: list[str] = []
    for chunk in chunks:
        lines.extend(framer.feed(chunk))
    return lines


def test_partial_line_is_held_until_completed() -> None:
    framer = LineFramer()
    assert framer.feed(b"info a\ninfo b\ninfo ") == ["info a", "info b"]
    assert framer.pending == len(b"info ")
    assert framer.feed(b"c\n") == ["info c"]
    assert framer.pending == 0


def test_single_chunk_matches_expected_lines() -> None:
    assert _feed_all([STREAM]) == EXPECTED


@pytest.mark.parametrize("cut", range(1, len(STREAM)))
def test_any_two_way_split_gives_same_lines(cut: int) -> None:
    assert _feed_all([STREAM[:cut], STREAM[cut:]]) == EXPECTED


def test_byte_at_a_time_gives_same_lines() -> None:
    assert _feed_all([STREAM[i : i + 1] for i in range(len(STREAM))]) == EXPECTED


def test_empty_chunk_yields_nothing() -> None:
    framer = LineFramer()
    assert framer.feed(b"") == []
    assert framer.feed(b"readyok") == []
    assert framer.feed(b"") == []
    assert framer.feed(b"\n") == ["readyok"]


def test_malformed_bytes_pass_through_as_text() -> None:
    lines = _feed_all([b"info \xff\xfe junk\n"])
    assert len(lines) == 1
    assert lines[0].startswith("info ")
    assert lines[0].endswith(" junk")


def test_flush_returns_unterminated_tail_once() -> None:
    framer = LineFramer()
    assert framer.feed(b"bestmove e2e4\nbestmo") == ["bestmove e2e4"]
    assert framer.flush() == ["bestmo"]
    assert framer.flush() == []


def test_flush_of_blank_tail_is_empty() -> None:
    framer = LineFramer()
    framer.feed(b"readyok\n   ")
    assert framer.flush() == []
