"""LineStreamReader 行重组单元测试"""

from __future__ import annotations

import logging

from srcdeps.utils.stream import LineStreamReader


class _Handle:
    def __init__(self) -> None:
        self.closed = False

    def close(self) -> None:
        self.closed = True


class TestLineStreamReader:
    def test_record_spans_chunks(self) -> None:
        """记录跨越 chunk: 两次输入恰好产生两条记录"""
        reader = LineStreamReader("[async t]", "stdout")
        assert reader.feed("foo\r\nbar") == ["foo\r"]
        assert reader.buffer == "bar"
        assert reader.feed("baz\n") == ["barbaz\n"]
        assert reader.buffer == ""

    def test_chunk_with_no_terminator(self) -> None:
        reader = LineStreamReader("[p]", "stdout")
        assert reader.feed("partial") == []
        assert reader.feed(" more") == []
        assert reader.buffer == "partial more"

    def test_chunk_with_many_records(self) -> None:
        reader = LineStreamReader("[p]", "stdout")
        assert reader.feed("a\nb\rc\nd") == ["a\n", "b\r", "c\n"]
        assert reader.buffer == "d"

    def test_crlf_split_across_chunks(self) -> None:
        reader = LineStreamReader("[p]", "stdout")
        assert reader.feed("x\r") == ["x\r"]
        assert reader.feed("\ny\n") == ["y\n"]

    def test_progress_carriage_returns(self) -> None:
        """git 进度输出只用 CR 刷新"""
        reader = LineStreamReader("[p]", "stderr")
        assert reader.feed("10%\r20%\r") == ["10%\r", "20%\r"]

    def test_blank_lines_kept(self) -> None:
        reader = LineStreamReader("[p]", "stdout")
        assert reader.feed("a\n\nb\n") == ["a\n", "\n", "b\n"]

    def test_records_logged_with_prefix(self, caplog) -> None:
        reader = LineStreamReader("[async mosra/corrade]", "stdout")
        with caplog.at_level(logging.INFO, logger="srcdeps.utils.stream"):
            reader.feed("Receiving objects\n")
        assert "[async mosra/corrade] Receiving objects" in caplog.text

    def test_close_releases_handle_and_flushes(self, caplog) -> None:
        handle = _Handle()
        reader = LineStreamReader("[p]", "stdout", handle=handle)
        reader.feed("tail")
        with caplog.at_level(logging.DEBUG, logger="srcdeps.utils.stream"):
            reader.close()
        assert handle.closed
        assert reader.closed
        assert reader.handle is None
        assert "tail" in caplog.text
        assert "close" in caplog.text
