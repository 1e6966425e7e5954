"""构建系统适配器

每个适配器把规范化后的依赖翻译为 configure → build → install 命令序列。
命令全部阻塞、严格顺序执行：构建会写共享的工具链状态，并可能依赖
前一个依赖的安装产物。
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from srcdeps.core.exceptions import UnsupportedBuildSystemError
from srcdeps.core.models import BuildContext, NormalizedDependency
from srcdeps.utils.shell import ArgBuilder

logger = logging.getLogger(__name__)


@dataclass
class BuildStep:
    """单条构建命令"""

    cmd: str
    args: list[str] = field(default_factory=list)
    log_command: bool = False


class BuildAdapter:
    """适配器基类"""

    system: str = ""

    def steps(self, ctx: BuildContext, dep: NormalizedDependency) -> list[BuildStep]:
        raise NotImplementedError

    def build(self, ctx: BuildContext, dep: NormalizedDependency) -> None:
        """顺序阻塞执行全部命令，任一失败即抛 ProcessFailure"""
        for step in self.steps(ctx, dep):
            ctx.runner.run(step.cmd, step.args, log_command=step.log_command)


class CMakeAdapter(BuildAdapter):
    system = "cmake"

    def steps(self, ctx: BuildContext, dep: NormalizedDependency) -> list[BuildStep]:
        spec = dep.build_spec
        install = spec.install_path and os.path.abspath(spec.install_path)

        configure = ArgBuilder("-B", dep.build_dir)
        configure.add_if(not spec.local_source, "-S", dep.source_dir, "-Wno-dev")
        configure.option("-DCMAKE_INSTALL_PREFIX", install)
        configure.extend(spec.options)
        configure.option("-DCMAKE_PREFIX_PATH", ";".join(self.prefix_paths(ctx, dep)))

        build = ArgBuilder("--build", dep.build_dir).add_if(spec.parallel, "--parallel")

        steps = [
            BuildStep("cmake", configure.build(), log_command=True),
            BuildStep("cmake", build.build()),
        ]
        if install:
            # 单独构建 install 目标，底层构建工具的报错更直观
            target = ArgBuilder("--build", dep.build_dir, "--target", "install")
            target.add_if(spec.parallel, "--parallel")
            steps.append(BuildStep("cmake", target.build()))
        return steps

    @staticmethod
    def prefix_paths(ctx: BuildContext, dep: NormalizedDependency) -> list[str]:
        """把上游依赖的安装路径转为绝对路径，缺失的只记录不报错"""
        paths: list[str] = []
        for name in dep.build_spec.dependencies:
            rec = ctx.metadata.get(name)
            if rec is None or not rec.install_path:
                logger.debug("Dependency not found: %s", name)
                continue
            logger.debug("Adding %s to cmake prefix paths", name)
            paths.append(os.path.abspath(rec.install_path))
        return paths


class MakeAdapter(BuildAdapter):
    """在构建目录中执行源码树的 Makefile

    产物写入构建目录，源码树的 mtime 之和保持不变；VPATH 与 srcdir 让
    相对路径的依赖仍能在源码树中找到。
    """

    system = "make"

    def steps(self, ctx: BuildContext, dep: NormalizedDependency) -> list[BuildStep]:
        spec = dep.build_spec
        src = os.path.abspath(dep.source_dir)
        base = [
            "-C", dep.build_dir, "-f", os.path.join(src, "Makefile"),
            f"VPATH={src}", f"srcdir={src}",
        ]
        steps = [
            BuildStep(
                "make", ArgBuilder(*base).add_if(spec.parallel, "-j").build(),
                log_command=True,
            ),
        ]
        if spec.install_path:
            args = ArgBuilder(*base, "install")
            args.option("DESTDIR", os.path.abspath(spec.install_path))
            steps.append(BuildStep("make", args.build()))
        return steps


class MesonAdapter(BuildAdapter):
    system = "meson"

    def steps(self, ctx: BuildContext, dep: NormalizedDependency) -> list[BuildStep]:
        spec = dep.build_spec
        setup = ArgBuilder("setup", dep.build_dir, dep.source_dir).extend(spec.options)
        steps = [
            BuildStep("meson", setup.build(), log_command=True),
            BuildStep("meson", ["compile", "-C", dep.build_dir]),
        ]
        if spec.install_path:
            args = ArgBuilder("install", "-C", dep.build_dir)
            args.option("--destdir", os.path.abspath(spec.install_path))
            steps.append(BuildStep("meson", args.build()))
        return steps


ADAPTERS: dict[str, type[BuildAdapter]] = {
    CMakeAdapter.system: CMakeAdapter,
    MakeAdapter.system: MakeAdapter,
    MesonAdapter.system: MesonAdapter,
}


def get_adapter(system: str | None) -> BuildAdapter:
    """按构建系统名称取适配器，未知名称在任何子进程启动前报错"""
    adapter_cls = ADAPTERS.get(system or CMakeAdapter.system)
    if adapter_cls is None:
        raise UnsupportedBuildSystemError(
            f"Unsupported build system: {system} (可用: {', '.join(ADAPTERS)})"
        )
    return adapter_cls()
