"""仓库拉取器

状态机 {absent, present}:
  - absent:  git init + remote add + 浅拉取(depth 1)目标 refspec + 分离检出
  - present: 比较 HEAD 与目标 refspec，相同则跳过，不同则浅拉取后重新检出

拉取与更新均以后台流式方式运行，多个依赖并发下载，由调用方 drain。
分支/标签名与 HEAD 的 SHA 永远不相等，因此每次运行都会重新拉取。
"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path

from srcdeps.core.dep.resolver import RefspecResolver
from srcdeps.core.models import FetchTarget
from srcdeps.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)

_DETACHED_CHECKOUT = ["git", "-c", "advice.detachedHead=false"]


def _script(*commands: list[str]) -> str:
    return " && ".join(shlex.join(c) for c in commands)


class RepoFetcher:
    """Git 仓库 clone / update"""

    def __init__(self, runner: CommandExecutor, resolver: RefspecResolver | None = None) -> None:
        self.runner = runner
        self.resolver = resolver or RefspecResolver(runner)

    def fetch(self, target: FetchTarget) -> str:
        """解析版本并调度拉取，返回解析出的 refspec"""
        refspec = self.resolver.resolve(
            target.ident, target.url, hash=target.hash, refspec=target.refspec,
        )
        if not Path(target.source_dir).exists():
            logger.info("拉取依赖 %s -> %s (%s)", target.ident, target.source_dir, refspec)
            self._spawn(target, self.clone_script(target, refspec))
            return refspec

        installed = self.installed_version(target.source_dir)
        if installed == refspec:
            logger.info("%s already installed (commit %s)", target.ident, refspec[:7])
        else:
            logger.info('Updating dependency "%s" to %s', target.ident, refspec)
            self._spawn(target, self.update_script(target, refspec))
        return refspec

    def installed_version(self, source_dir: str) -> str:
        """当前检出的 commit SHA"""
        output = self.runner.run(
            "git", ["-C", source_dir, "rev-parse", "HEAD"], capture_output=True,
        )
        return (output or "").strip()

    @staticmethod
    def clone_script(target: FetchTarget, refspec: str) -> str:
        d = target.source_dir
        return _script(
            ["git", "init", "--quiet", d],
            ["git", "-C", d, "remote", "add", "origin", target.url],
            ["git", "-C", d, "fetch", "--progress", "--depth", "1", "--tags", "origin", refspec],
            [*_DETACHED_CHECKOUT, "-C", d, "checkout", "--detach", "FETCH_HEAD"],
        )

    @staticmethod
    def update_script(target: FetchTarget, refspec: str) -> str:
        d = target.source_dir
        return _script(
            ["git", "-C", d, "fetch", "--progress", "--depth", "1", "--tags", "origin", refspec],
            [*_DETACHED_CHECKOUT, "-C", d, "checkout", "--detach", "FETCH_HEAD"],
        )

    def _spawn(self, target: FetchTarget, script: str) -> None:
        self.runner.run("sh", ["-c", script], background=True, ident=target.ident)
