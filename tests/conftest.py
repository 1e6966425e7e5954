"""共享 fixture: 记录型命令执行器

FakeRunner 满足 CommandExecutor 协议，不启动任何子进程:
  - capture 调用按 (cmd, 首个参数) 查表返回预置输出
  - 阻塞调用只记录；遇到 install 步骤时创建目标目录，模拟安装产物；
    effects 按命令名注册额外的副作用（如模拟 make 写出目标文件）
  - 后台调用记录到 background，drain() 记录屏障位置
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

import pytest

from srcdeps.core.exceptions import PreconditionError


class FakeRunner:
    def __init__(self) -> None:
        self.calls: list[tuple[str, list[str], str]] = []
        self.background: list[tuple[str, list[str], str]] = []
        self.outputs: dict[tuple[str, str], str | Callable[[list[str]], str]] = {}
        self.events: list[str] = []
        self.effects: dict[str, Callable[[list[str]], None]] = {}
        self.closed = False

    def run(
        self, cmd, args, *, capture_output=False, background=False,
        ident="", cwd=None, log_command=False,
    ):
        if capture_output and background:
            raise PreconditionError("capture_output 与 background 不兼容")
        if capture_output:
            self.calls.append((cmd, list(args), "capture"))
            out = self.outputs.get((cmd, args[0] if args else ""), "")
            return out(list(args)) if callable(out) else out
        if background:
            self.background.append((cmd, list(args), ident))
            self.events.append(f"spawn:{ident}")
            return None
        self.calls.append((cmd, list(args), "blocking"))
        self.events.append(f"run:{cmd}")
        if cmd in self.effects:
            self.effects[cmd](list(args))
        self._simulate_install(cmd, list(args))
        return None

    def drain(self):
        self.events.append("drain")
        return []

    def close(self) -> None:
        self.closed = True

    def blocking(self) -> list[tuple[str, list[str]]]:
        return [(c, a) for c, a, mode in self.calls if mode == "blocking"]

    @staticmethod
    def _simulate_install(cmd: str, args: list[str]) -> None:
        if cmd == "cmake" and "install" in args:
            build_dir = args[args.index("--build") + 1]
            Path(build_dir, "install").mkdir(parents=True, exist_ok=True)
        for arg in args:
            for flag in ("DESTDIR=", "--destdir="):
                if arg.startswith(flag):
                    os.makedirs(arg[len(flag):], exist_ok=True)


@pytest.fixture()
def fake_runner() -> FakeRunner:
    return FakeRunner()
