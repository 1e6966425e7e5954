"""CLI: 版本解析、指纹与缓存查询"""

from __future__ import annotations

import click

from srcdeps.core.exceptions import SrcDepsError


def register(group: click.Group) -> None:
    group.add_command(resolve)
    group.add_command(fingerprint)
    group.add_command(show_cache)


@click.command()
@click.argument("url")
@click.option("--hash", "short_hash", default=None, help="短 commit hash")
@click.option("--refspec", default=None, help="分支 / 标签 / 完整 SHA")
def resolve(url: str, short_hash: str | None, refspec: str | None) -> None:
    """解析仓库要检出的版本"""
    from srcdeps.core.dep.resolver import RefspecResolver
    from srcdeps.utils.shell import CommandRunner

    runner = CommandRunner()
    try:
        click.echo(RefspecResolver(runner).resolve(url, url, hash=short_hash, refspec=refspec))
    except SrcDepsError as e:
        raise click.ClickException(str(e)) from e
    finally:
        runner.close()


@click.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False))
def fingerprint(path: str) -> None:
    """输出源码树的 source_hash"""
    from srcdeps.core.fingerprint import source_hash

    click.echo(source_hash(path))


@click.command(name="cache")
@click.option("--cache", "cache_file", default=".srcdeps.cache", help="指纹缓存文件")
def show_cache(cache_file: str) -> None:
    """列出上次运行记录的指纹"""
    from srcdeps.services.build.cache import FingerprintCache

    try:
        entries = FingerprintCache(cache_file).load()
    except SrcDepsError as e:
        raise click.ClickException(str(e)) from e
    if not entries:
        click.echo("缓存为空。")
        return
    for key, entry in sorted(entries.items()):
        click.echo(
            f"  {key:30s} source={entry.get('source_hash', '')[:12]} "
            f"conf={entry.get('conf_hash', '')[:12]}"
        )
