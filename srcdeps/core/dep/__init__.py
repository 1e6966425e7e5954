"""依赖声明、版本解析与仓库拉取

- normalizer.py: 声明规范化
- resolver.py: refspec 解析
- fetcher.py: clone / update 状态机
"""

from srcdeps.core.dep.fetcher import RepoFetcher
from srcdeps.core.dep.normalizer import SpecNormalizer, parse_declaration
from srcdeps.core.dep.resolver import RefspecResolver

__all__ = [
    "RepoFetcher",
    "RefspecResolver",
    "SpecNormalizer",
    "parse_declaration",
]
