"""子进程输出的行重组器

后台进程的 stdout/stderr 以任意边界的 chunk 到达，LineStreamReader
负责缓存半行、切出完整记录并带前缀写入日志。
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

_TERMINATORS = ("\r", "\n")


class LineStreamReader:
    """单个输出通道的半行缓冲

    记录以 CR 或 LF 结尾（包含终止符本身）。CR 之后紧跟的 LF 视为同一个
    终止符，直接丢弃，不产生空记录；该 LF 可能落在下一个 chunk 的开头。
    """

    def __init__(
        self, prefix: str, stream_name: str, handle: Any = None, *, ident: str = "",
    ) -> None:
        self.prefix = prefix
        self.stream_name = stream_name
        self.ident = ident
        self.handle = handle
        self.buffer = ""
        self.closed = False
        self._after_cr = False

    def feed(self, chunk: str) -> list[str]:
        """追加 chunk，返回本次切出的完整记录"""
        self.buffer += chunk
        records: list[str] = []
        while True:
            if self._after_cr and self.buffer:
                if self.buffer[0] == "\n":
                    self.buffer = self.buffer[1:]
                self._after_cr = False
            record = self._next_record()
            if record is None:
                return records
            records.append(record)
            logger.info("%s %s", self.prefix, record.rstrip("\r\n"), extra=self._extra())

    def _next_record(self) -> str | None:
        positions = [i for i in (self.buffer.find(t) for t in _TERMINATORS) if i >= 0]
        if not positions:
            return None
        end = min(positions) + 1
        record, self.buffer = self.buffer[:end], self.buffer[end:]
        self._after_cr = record.endswith("\r")
        return record

    def _extra(self) -> dict[str, str]:
        return {"dependency": self.ident, "stream": self.stream_name}

    def close(self) -> None:
        """流结束：记录关闭并释放句柄，残留的半行原样输出"""
        if self.closed:
            return
        if self.buffer:
            logger.info("%s %s", self.prefix, self.buffer, extra=self._extra())
            self.buffer = ""
        logger.debug("%s %s: close", self.prefix, self.stream_name)
        if self.handle is not None and hasattr(self.handle, "close"):
            self.handle.close()
        self.handle = None
        self.closed = True
