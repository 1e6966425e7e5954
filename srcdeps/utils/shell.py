"""Shell 命令执行门面: 统一子进程调用

一个 run() 入口，三种互斥模式:
  - 阻塞:       继承终端输出，失败即抛 ProcessFailure
  - 阻塞捕获:   运行结束后返回 stdout 文本
  - 后台流式:   注册到 ProcessGroup 立即返回，输出逐行写日志

通过 CommandExecutor 协议抽象，测试时可注入记录型实现，无需 patch subprocess。
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from typing import Iterable, Protocol

from srcdeps.core.exceptions import PreconditionError, ProcessFailure
from srcdeps.utils.procgroup import BackgroundResult, ProcessGroup

logger = logging.getLogger(__name__)


# =========================================================================
# 参数构造器
# =========================================================================

class ArgBuilder:
    """只输出实际存在的参数，替代 "先拼 None 再过滤" 的写法"""

    def __init__(self, *args: str) -> None:
        self._args: list[str] = list(args)

    def add(self, *args: str) -> ArgBuilder:
        self._args.extend(args)
        return self

    def add_if(self, condition: object, *args: str) -> ArgBuilder:
        if condition:
            self._args.extend(args)
        return self

    def option(self, flag: str, value: str | None) -> ArgBuilder:
        """value 非空时输出 flag=value"""
        if value:
            self._args.append(f"{flag}={value}")
        return self

    def extend(self, args: Iterable[str]) -> ArgBuilder:
        self._args.extend(args)
        return self

    def build(self) -> list[str]:
        return list(self._args)


# =========================================================================
# 命令执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议: 解析器、拉取器、构建适配器只依赖此接口"""

    def run(
        self,
        cmd: str,
        args: list[str],
        *,
        capture_output: bool = False,
        background: bool = False,
        ident: str = "",
        cwd: str | None = None,
        log_command: bool = False,
    ) -> str | None:
        ...

    def drain(self) -> list[BackgroundResult]:
        ...


# =========================================================================
# 默认实现: 本地子进程
# =========================================================================

class CommandRunner:
    """本地命令执行器（默认实现），持有本次运行的后台进程组"""

    def __init__(self, group: ProcessGroup | None = None) -> None:
        self.group = group or ProcessGroup()

    def run(
        self,
        cmd: str,
        args: list[str],
        *,
        capture_output: bool = False,
        background: bool = False,
        ident: str = "",
        cwd: str | None = None,
        log_command: bool = False,
    ) -> str | None:
        """执行命令

        参数:
            cmd: 可执行文件名
            args: 参数向量（不经 shell 解析）
            capture_output: 阻塞运行并返回 stdout
            background: 注册为后台进程，立即返回 None
            ident: 后台进程的日志标识
            cwd: 工作目录
            log_command: 以 INFO 级别记录命令行（默认 DEBUG）

        异常:
            PreconditionError: capture_output 与 background 同时开启
            ProcessFailure: 阻塞命令失败，或捕获模式下无法启动
        """
        if capture_output and background:
            raise PreconditionError(
                "capture_output 与 background 不兼容: 捕获输出必须阻塞执行"
            )

        line = shlex.join([cmd, *args])
        if log_command:
            logger.info("Running: %s", line)
        else:
            logger.debug("Running: %s", line)

        if capture_output:
            return self._capture(cmd, args, cwd)
        if background:
            self.group.spawn(ident or "<no-ident>", cmd, args, cwd=cwd)
            return None
        self._blocking(cmd, args, cwd)
        return None

    def drain(self) -> list[BackgroundResult]:
        """等待所有后台进程结束"""
        return self.group.drain()

    def close(self) -> None:
        self.group.close()

    @staticmethod
    def _capture(cmd: str, args: list[str], cwd: str | None) -> str:
        try:
            r = subprocess.run(
                [cmd, *args], capture_output=True, text=True,
                cwd=cwd, check=False,
            )
        except OSError as e:
            raise ProcessFailure(f"无法执行命令 {cmd}: {e}") from e
        if r.returncode != 0:
            logger.debug("%s 返回 %d: %s", cmd, r.returncode, r.stderr[:300])
        return r.stdout

    @staticmethod
    def _blocking(cmd: str, args: list[str], cwd: str | None) -> None:
        try:
            r = subprocess.run([cmd, *args], cwd=cwd, check=False)
        except OSError as e:
            raise ProcessFailure(f"无法执行命令 {cmd}: {e}", returncode=127) from e
        if r.returncode == 0:
            return
        if r.returncode < 0:
            raise ProcessFailure(
                f"命令被信号终止: {cmd} (signal={-r.returncode})",
                signal=-r.returncode,
            )
        logger.error("Command failed with exit code: %d", r.returncode)
        raise ProcessFailure(
            f"命令失败 (rc={r.returncode}): {cmd}", returncode=r.returncode,
        )
