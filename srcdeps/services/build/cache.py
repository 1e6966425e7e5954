"""构建指纹缓存文件

缓存策略:
  - 单个 JSON 对象，key -> {source_hash, conf_hash}
  - 文件不存在视为空缓存（首次运行总是构建）
  - 每次运行整体覆盖，只保留本次计算的指纹，过期条目自然丢弃
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from srcdeps.core.exceptions import ConfigError
from srcdeps.core.models import RefHash
from srcdeps.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)


class FingerprintCache:
    """指纹缓存读写"""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> dict[str, dict[str, str]]:
        """读取上一次运行的指纹"""
        if not self.path.exists():
            return {}
        logger.debug("Reading from %s", self.path)
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            raise ConfigError(f"缓存文件损坏: {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"缓存文件顶层必须是对象: {self.path}")
        return data

    def save(self, entries: dict[str, dict[str, str]]) -> None:
        """用本次运行的指纹整体覆盖缓存文件"""
        logger.debug("Writing to %s", self.path)
        atomic_write(self.path, json.dumps(entries, indent=2, sort_keys=True))

    @staticmethod
    def matches(cached: dict[str, str] | None, ref: RefHash) -> bool:
        """缓存条目与当前指纹是否一致"""
        if not cached:
            return False
        return (
            cached.get("source_hash") == ref.source_hash
            and cached.get("conf_hash") == ref.conf_hash
        )
