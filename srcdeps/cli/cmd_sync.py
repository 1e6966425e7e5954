"""CLI: 依赖拉取与构建"""

from __future__ import annotations

from typing import Any

import click

from srcdeps.core.config import init_config
from srcdeps.core.exceptions import FormatError, ProcessFailure, SrcDepsError
from srcdeps.utils.yaml_io import load_yaml


def register(group: click.Group) -> None:
    group.add_command(sync)


def load_manifest(path: str) -> list[Any]:
    """读取 YAML 清单中的 dependencies 列表"""
    data = load_yaml(path)
    if isinstance(data, list):
        return data
    deps = data.get("dependencies") if isinstance(data, dict) else None
    if not isinstance(deps, list):
        raise FormatError(f"清单 {path} 缺少 dependencies 列表")
    return deps


def exit_code_for(exc: SrcDepsError) -> int:
    """ProcessFailure 透传子进程退出码，其余错误返回 1"""
    if isinstance(exc, ProcessFailure) and exc.returncode:
        return exc.returncode
    return 1


@click.command()
@click.argument("manifest", default="deps.yml")
@click.option("--config", "-c", "config_path", default="srcdeps.yml", help="配置文件路径")
@click.option("--root", default=None, help="下载目录（覆盖配置）")
@click.option("--cache", "cache_file", default=None, help="指纹缓存文件（覆盖配置）")
def sync(manifest: str, config_path: str, root: str | None, cache_file: str | None) -> None:
    """拉取并构建清单中的全部依赖"""
    from srcdeps.services.orchestrator import Orchestrator

    orch = None
    try:
        cfg = init_config(config_path)
        if root:
            cfg.download_root = root
        if cache_file:
            cfg.cache_file = cache_file
        orch = Orchestrator(cfg)
        report = orch.setup(load_manifest(manifest))
    except SrcDepsError as e:
        click.echo(f"[{e.code}] {e}", err=True)
        raise SystemExit(exit_code_for(e)) from e
    finally:
        if orch is not None:
            orch.close()

    click.echo(f"已构建: {', '.join(report.built) or '-'}")
    click.echo(f"已跳过: {', '.join(report.skipped) or '-'}")
