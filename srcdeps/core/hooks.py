"""构建前后钩子

钩子可以是任意可调用对象，也可以是 shell 命令字符串。钩子可能切换工作
目录，执行完毕后总是恢复调用前的 cwd。
"""

from __future__ import annotations

import functools
import logging
import os
from typing import Any, Callable, TypeVar

from srcdeps.core.models import Hook
from srcdeps.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def with_dir(directory: str) -> Callable[[F], F]:
    """装饰器: 在指定目录内执行被装饰函数，结束后切回原目录

    用法:
        @with_dir("external/corrade")
        def patch():
            ...
    """

    def decorator(fn: F) -> F:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            cwd = os.getcwd()
            logger.debug("chdir %s", directory)
            os.chdir(directory)
            try:
                return fn(*args, **kwargs)
            finally:
                logger.debug("chdir %s", cwd)
                os.chdir(cwd)

        return wrapper  # type: ignore[return-value]

    return decorator


def run_hook(hook: Hook, runner: CommandExecutor, *, cwd: str, label: str) -> None:
    """执行一个钩子并恢复工作目录

    字符串钩子通过 sh -c 在 cwd 下阻塞执行，失败即终止本次运行。
    """
    saved = os.getcwd()
    try:
        if isinstance(hook, str):
            runner.run("sh", ["-c", hook], cwd=cwd, log_command=True)
        else:
            logger.info("执行钩子 %s", label)
            hook()
    finally:
        os.chdir(saved)
