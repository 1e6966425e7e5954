"""构建指纹

source_hash 取源码树所有普通文件 mtime（整数秒）之和的 SHA-1，
conf_hash 取规范化后构建配置的 SHA-1。任一变化都会触发重新构建；
只 touch 不改内容同样会改变 source_hash。
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import stat
from pathlib import Path
from typing import Any

from srcdeps.core.models import RefHash

logger = logging.getLogger(__name__)


def _sha1(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()  # noqa: S324


def source_hash(path: str | Path) -> str:
    """递归累加目录下所有普通文件的 mtime 后取哈希

    目录不存在时和为 0，仍返回稳定的哈希值。
    """
    total = 0
    for dirpath, _dirnames, filenames in os.walk(path):
        for name in filenames:
            try:
                st = os.stat(os.path.join(dirpath, name))
            except OSError:
                # 悬空符号链接
                continue
            if stat.S_ISREG(st.st_mode):
                total += int(st.st_mtime)
    return _sha1(str(total))


def canonicalize(value: Any) -> Any:
    """生成与键顺序无关的可序列化形式

    - 剔除所有可调用对象（hook 函数不参与指纹）
    - 映射转为 [key, value] 对列表，只在同类型的键之间排序
    - 序列保持位置顺序
    """
    if isinstance(value, dict):
        items = [(k, v) for k, v in value.items() if not callable(v)]
        items.sort(key=lambda kv: (type(kv[0]).__name__, kv[0]))
        return [[k, canonicalize(v)] for k, v in items]
    if isinstance(value, (list, tuple)):
        return [canonicalize(v) for v in value if not callable(v)]
    return value


def conf_hash(config: Any) -> str:
    """规范化配置后序列化取哈希"""
    canonical = json.dumps(
        canonicalize(config), separators=(",", ":"),
        ensure_ascii=False, default=str,
    )
    return _sha1(canonical)


def compute_refhash(key: str, source_dir: str | Path, config: Any) -> RefHash:
    """计算单个依赖的缓存指纹"""
    ref = RefHash(
        key=key,
        source_hash=source_hash(source_dir),
        conf_hash=conf_hash(config),
    )
    logger.debug(
        "指纹 %s: source=%s conf=%s", key, ref.source_hash[:12], ref.conf_hash[:12],
    )
    return ref
