"""集中配置管理

提供下载目录、缓存文件、本地工程目录等统一入口。
支持从 YAML 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field

from srcdeps.core.exceptions import ConfigError
from srcdeps.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """全局配置"""

    # 目录
    download_root: str = "external"
    cache_file: str = ".srcdeps.cache"
    local_source_dir: str = "src"
    local_build_dir: str = "build"

    # 简写 owner/project 展开使用的托管地址
    github_base: str = "https://github.com"

    extra: dict = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = "srcdeps.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"配置文件顶层必须是映射: {path}")
        known = {f for f in cls.__dataclass_fields__ if f != "extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        cfg = cls(**matched)
        cfg.extra = extra
        return cfg

    def to_dict(self) -> dict:
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = "srcdeps.yml") -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
