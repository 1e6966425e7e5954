"""Refspec 解析器

按以下顺序确定要检出的版本，先命中者生效:
  1. hash:    ls-remote 列出全部远端引用，线性扫描第一个以 hash 为前缀的 SHA
  2. refspec: 原样使用，不做本地校验
  3. 默认:    查询 refs/heads/main 与 refs/heads/master，优先 main

短 hash 有歧义时取列表顺序中的第一个，不做唯一性检查。
"""

from __future__ import annotations

import logging

from srcdeps.core.exceptions import ResolutionError
from srcdeps.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)

_DEFAULT_BRANCHES = ("refs/heads/main", "refs/heads/master")


def parse_ls_remote(output: str) -> list[tuple[str, str]]:
    """解析 git ls-remote 输出为 [(sha, ref), ...]，保持原顺序"""
    refs: list[tuple[str, str]] = []
    for line in output.splitlines():
        fields = line.split()
        if len(fields) >= 2:
            refs.append((fields[0], fields[1]))
    return refs


class RefspecResolver:
    """确定依赖要检出的精确版本"""

    def __init__(self, runner: CommandExecutor) -> None:
        self.runner = runner

    def resolve(
        self,
        ident: str,
        url: str,
        *,
        hash: str | None = None,  # noqa: A002
        refspec: str | None = None,
    ) -> str:
        if hash:
            full = self.expand_hash(url, hash)
            if full is None:
                raise ResolutionError(f"无法解析 {ident} 的 hash: {hash}")
            logger.debug("%s: hash %s -> %s", ident, hash, full)
            return full
        if refspec:
            return refspec
        latest = self.latest_commit(url)
        if latest is None:
            raise ResolutionError(f"依赖 {ident} 没有可用的 main/master 分支")
        return latest

    def expand_hash(self, url: str, short: str) -> str | None:
        """把短 hash 展开为完整 SHA，有歧义时第一个匹配生效"""
        output = self.runner.run("git", ["ls-remote", url], capture_output=True)
        for sha, _ref in parse_ls_remote(output or ""):
            if sha.startswith(short):
                return sha
        return None

    def latest_commit(self, url: str) -> str | None:
        """查询 main/master 分支的最新 commit，优先 main"""
        output = self.runner.run(
            "git", ["ls-remote", url, "--heads", *_DEFAULT_BRANCHES],
            capture_output=True,
        )
        heads = {ref: sha for sha, ref in parse_ls_remote(output or "")}
        for branch in _DEFAULT_BRANCHES:
            if branch in heads:
                return heads[branch]
        return None
