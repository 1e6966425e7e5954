"""核心数据模型

依赖声明在解析时一次性区分为三种形态（Shorthand / Explicit / LocalOnly），
后续模块只处理规范化后的记录。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Union

from srcdeps.utils.shell import CommandExecutor

LOCAL_KEY = "local"

Hook = Union[Callable[[], Any], str]


# =========================================================================
# 依赖声明（带标签的变体）
# =========================================================================


@dataclass(frozen=True)
class Shorthand:
    """GitHub 简写 "owner/project"，只拉取不构建"""

    owner: str
    project: str

    @property
    def key(self) -> str:
        return f"{self.owner}/{self.project}"


@dataclass(frozen=True)
class Explicit:
    """带 url 或 repo 简写槽位的完整声明"""

    owner: str
    project: str
    url: str | None = None
    hash: str | None = None
    refspec: str | None = None
    build: dict[str, Any] | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def key(self) -> str:
        return f"{self.owner}/{self.project}"


@dataclass(frozen=True)
class LocalOnly:
    """只有 build 段，表示本地工程自身"""

    build: dict[str, Any]
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def key(self) -> str:
        return LOCAL_KEY


Declaration = Union[Shorthand, Explicit, LocalOnly]


# =========================================================================
# 规范化结果
# =========================================================================


@dataclass
class RefHash:
    """缓存指纹"""

    key: str
    source_hash: str
    conf_hash: str

    def to_entry(self) -> dict[str, str]:
        return {"source_hash": self.source_hash, "conf_hash": self.conf_hash}


@dataclass
class BuildSpec:
    """单个依赖的构建配置"""

    system: str | None = None
    install: bool | str | None = None
    options: list[str] = field(default_factory=list)
    parallel: bool = False
    dependencies: list[str] = field(default_factory=list)
    local_source: bool = False
    pre_build: Hook | None = None
    post_build: Hook | None = None
    force_rebuild: bool = False
    refhash: RefHash | None = None

    @property
    def install_path(self) -> str | None:
        """默认值合并后的安装路径，False/None 表示不安装"""
        return self.install if isinstance(self.install, str) else None


@dataclass
class FetchTarget:
    """需要从远端拉取的仓库"""

    ident: str
    url: str
    source_dir: str
    hash: str | None = None
    refspec: str | None = None


@dataclass
class NormalizedDependency:
    """带构建指令的依赖，每条声明至多产生一个"""

    key: str
    source_dir: str
    build_dir: str
    build_spec: BuildSpec
    # 原始声明，用于计算 conf_hash
    raw: dict[str, Any] = field(default_factory=dict)


# =========================================================================
# 运行期上下文
# =========================================================================


@dataclass
class BuildRecord:
    """单个依赖在本次运行中的构建状态"""

    install_path: str | None = None
    built: bool = False


@dataclass
class BuildContext:
    """贯穿编排器与构建适配器的运行期上下文，替代全局安装路径表"""

    runner: CommandExecutor
    metadata: dict[str, BuildRecord] = field(default_factory=dict)

    def record(self, key: str) -> BuildRecord:
        return self.metadata.setdefault(key, BuildRecord())

    def built_this_run(self, key: str) -> bool:
        rec = self.metadata.get(key)
        return rec is not None and rec.built


@dataclass
class RunReport:
    """一次 setup 的结果汇总"""

    built: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    fetched: list[str] = field(default_factory=list)
    cache: dict[str, dict[str, str]] = field(default_factory=dict)
