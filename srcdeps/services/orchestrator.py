"""依赖拉取与构建编排器

两阶段协议:
  1. 拉取: 规范化全部声明，为每个远端依赖调度后台 clone/update，
     然后 drain 到所有后台进程结束（唯一的同步点），再计算指纹
  2. 构建: 按声明顺序逐个阻塞构建；满足跳过条件的依赖不构建，
     但无论是否构建都记录本次指纹，最后整体覆盖缓存文件

后台拉取失败只写日志，进入构建阶段前不做检查。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable

from srcdeps.core.config import Config, get_config
from srcdeps.core.dep.fetcher import RepoFetcher
from srcdeps.core.dep.normalizer import SpecNormalizer
from srcdeps.core.exceptions import FormatError
from srcdeps.core.fingerprint import compute_refhash
from srcdeps.core.hooks import run_hook
from srcdeps.core.models import (
    BuildContext,
    FetchTarget,
    NormalizedDependency,
    RefHash,
    RunReport,
)
from srcdeps.services.build.adapters import get_adapter
from srcdeps.services.build.cache import FingerprintCache
from srcdeps.utils.shell import CommandExecutor, CommandRunner

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM = "cmake"


def apply_defaults(dep: NormalizedDependency) -> None:
    """合并构建默认值: cmake、安装到 <build_dir>/install、空列表"""
    spec = dep.build_spec
    spec.system = spec.system or DEFAULT_SYSTEM
    if spec.install is None or spec.install is True:
        spec.install = f"{dep.build_dir}/install"
    spec.options = list(spec.options or [])
    spec.dependencies = list(spec.dependencies or [])


class Orchestrator:
    """依赖拉取与构建编排器"""

    def __init__(
        self,
        config: Config | None = None,
        runner: CommandExecutor | None = None,
        *,
        fetcher: RepoFetcher | None = None,
    ) -> None:
        self.config = config or get_config()
        self.runner = runner or CommandRunner()
        self.normalizer = SpecNormalizer(
            self.config.download_root,
            local_source_dir=self.config.local_source_dir,
            local_build_dir=self.config.local_build_dir,
            github_base=self.config.github_base,
        )
        self.fetcher = fetcher or RepoFetcher(self.runner)
        self.cache = FingerprintCache(self.config.cache_file)

    # ------------------------------------------------------------------
    # 入口
    # ------------------------------------------------------------------

    def setup(self, declarations: Iterable[Any]) -> RunReport:
        """拉取并构建全部依赖，返回本次运行汇总"""
        report = RunReport()
        targets, deps = self.plan(declarations)

        # ---- 阶段 1: 并发拉取 ----
        Path(self.config.download_root).mkdir(parents=True, exist_ok=True)
        for target in targets:
            self.fetcher.fetch(target)
            report.fetched.append(target.ident)
        self.runner.drain()

        refs: dict[str, RefHash] = {}
        for dep in deps:
            refs[dep.key] = compute_refhash(dep.key, dep.source_dir, dep.raw)
            dep.build_spec.refhash = refs[dep.key]

        # ---- 阶段 2: 顺序构建 ----
        cached = self.cache.load()
        ctx = BuildContext(runner=self.runner)
        fresh: dict[str, dict[str, str]] = {}
        for dep in deps:
            if self.build_one(ctx, dep, cached.get(dep.key)):
                report.built.append(dep.key)
            else:
                report.skipped.append(dep.key)
            fresh[dep.key] = refs[dep.key].to_entry()

        self.cache.save(fresh)
        report.cache = fresh
        logger.info(
            "完成: 构建 %d 个, 跳过 %d 个", len(report.built), len(report.skipped),
        )
        return report

    def plan(
        self, declarations: Iterable[Any],
    ) -> tuple[list[FetchTarget], list[NormalizedDependency]]:
        """规范化全部声明并检查 key 唯一"""
        targets: list[FetchTarget] = []
        deps: list[NormalizedDependency] = []
        seen: set[str] = set()
        for raw in declarations:
            target, dep = self.normalizer.normalize(raw)
            key = target.ident if target is not None else dep.key  # type: ignore[union-attr]
            if key in seen:
                raise FormatError(f"依赖重复声明: {key}")
            seen.add(key)
            if target is not None:
                targets.append(target)
            if dep is not None:
                # 未知构建系统在任何子进程启动前报错
                get_adapter(dep.build_spec.system)
                deps.append(dep)
        return targets, deps

    def close(self) -> None:
        close = getattr(self.runner, "close", None)
        if close is not None:
            close()

    # ------------------------------------------------------------------
    # 单个依赖
    # ------------------------------------------------------------------

    def build_one(
        self, ctx: BuildContext, dep: NormalizedDependency,
        cached: dict[str, str] | None,
    ) -> bool:
        """按需构建单个依赖，返回是否实际构建"""
        apply_defaults(dep)
        spec = dep.build_spec
        adapter = get_adapter(spec.system)

        record = ctx.record(dep.key)
        record.install_path = spec.install_path

        reason = self.build_reason(ctx, dep, cached)
        if reason is None:
            logger.info("Skipping build %s", dep.key)
            return False

        logger.info("构建 %s (%s, 原因: %s)", dep.key, spec.system, reason)
        record.built = True

        if spec.pre_build is not None:
            run_hook(spec.pre_build, ctx.runner, cwd=dep.source_dir, label=f"{dep.key} pre_build")
        Path(dep.build_dir).mkdir(parents=True, exist_ok=True)
        adapter.build(ctx, dep)
        if spec.post_build is not None:
            run_hook(spec.post_build, ctx.runner, cwd=dep.source_dir, label=f"{dep.key} post_build")
        return True

    @staticmethod
    def build_reason(
        ctx: BuildContext, dep: NormalizedDependency, cached: dict[str, str] | None,
    ) -> str | None:
        """返回需要构建的原因，None 表示可以跳过"""
        spec = dep.build_spec
        if spec.force_rebuild:
            return "force_rebuild"
        if spec.install_path and not Path(spec.install_path).exists():
            return "安装目录不存在"
        rebuilt = [name for name in spec.dependencies if ctx.built_this_run(name)]
        if rebuilt:
            return f"上游依赖已重建: {', '.join(rebuilt)}"
        refhash: RefHash | None = spec.refhash
        if refhash is None or not FingerprintCache.matches(cached, refhash):
            return "指纹变化"
        if not Path(dep.build_dir).exists():
            return "构建目录不存在"
        return None
