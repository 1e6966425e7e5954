"""srcdeps 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

import os

import click

from srcdeps import __version__
from srcdeps.utils.logger import setup_logging


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """srcdeps - 源码依赖拉取与构建编排"""
    setup_logging(
        level=os.getenv("SRCDEPS_LOG_LEVEL", "INFO"),
        json_output=os.getenv("SRCDEPS_LOG_JSON", "") == "1",
    )


# 注册各领域子命令
from srcdeps.cli.cmd_sync import register as _reg_sync  # noqa: E402
from srcdeps.cli.cmd_inspect import register as _reg_inspect  # noqa: E402

_reg_sync(main)
_reg_inspect(main)
