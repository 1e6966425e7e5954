"""后台子进程组: 单线程事件循环上的并发核心

拉取阶段的多个 git 进程注册到同一个 asyncio 事件循环上，由 drain()
一次性跑完。循环在 drain 之前不运行，回调之间不会交错，因此进程内
状态无需加锁。
"""

from __future__ import annotations

import asyncio
import codecs
import logging
from dataclasses import dataclass

from srcdeps.utils.stream import LineStreamReader

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 4096


@dataclass
class BackgroundResult:
    """后台进程的退出状态（仅用于日志和诊断，不做校验）"""

    ident: str
    returncode: int | None


class ProcessGroup:
    """管理一组后台进程，drain() 是唯一的同步点"""

    def __init__(self) -> None:
        self._loop = asyncio.new_event_loop()
        self._pending: list[asyncio.Task] = []

    @property
    def pending(self) -> int:
        return len(self._pending)

    def spawn(self, ident: str, cmd: str, args: list[str], cwd: str | None = None) -> None:
        """注册后台进程，立即返回；进程在 drain() 时真正启动"""
        coro = self._run(ident, cmd, args, cwd)
        self._pending.append(self._loop.create_task(coro))

    def drain(self) -> list[BackgroundResult]:
        """运行事件循环直到所有已注册进程结束"""
        if not self._pending:
            return []
        tasks, self._pending = self._pending, []

        async def _join() -> list[BackgroundResult]:
            return list(await asyncio.gather(*tasks))

        results = self._loop.run_until_complete(_join())
        logger.debug("后台进程全部结束: %d 个", len(results))
        return results

    def close(self) -> None:
        if not self._loop.is_closed():
            self._loop.close()

    async def _run(
        self, ident: str, cmd: str, args: list[str], cwd: str | None,
    ) -> BackgroundResult:
        prefix = f"[async {ident}]"
        try:
            proc = await asyncio.create_subprocess_exec(
                cmd, *args, cwd=cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error("%s 启动失败: %s", prefix, e)
            return BackgroundResult(ident=ident, returncode=None)

        logger.debug("%s created (pid=%s)", prefix, proc.pid)
        await asyncio.gather(
            _pump(proc.stdout, LineStreamReader(prefix, "stdout", ident=ident)),
            _pump(proc.stderr, LineStreamReader(prefix, "stderr", ident=ident)),
        )
        code = await proc.wait()
        if code != 0:
            logger.warning("%s exited with code %s (pid=%s)", prefix, code, proc.pid)
        else:
            logger.debug("%s exited with code 0 (pid=%s)", prefix, proc.pid)
        return BackgroundResult(ident=ident, returncode=code)


async def _pump(stream: asyncio.StreamReader | None, reader: LineStreamReader) -> None:
    if stream is None:
        reader.close()
        return
    # 多字节字符可能跨 chunk
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        chunk = await stream.read(_CHUNK_SIZE)
        if not chunk:
            reader.feed(decoder.decode(b"", final=True))
            reader.close()
            return
        reader.feed(decoder.decode(chunk))
