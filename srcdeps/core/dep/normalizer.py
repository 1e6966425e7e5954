"""依赖声明规范化

职责:
- 把松散的声明（字符串 / 映射）一次性区分为三种形态
- 推导 owner/project、默认 GitHub URL、源码与构建目录
- 产出拉取目标与构建记录
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Any, Mapping
from urllib.parse import urlparse

from srcdeps.core.exceptions import FormatError
from srcdeps.core.models import (
    BuildSpec,
    Declaration,
    Explicit,
    FetchTarget,
    LocalOnly,
    NormalizedDependency,
    Shorthand,
)

logger = logging.getLogger(__name__)

# build 段中允许出现的字段
_BUILD_FIELDS = {
    "system", "install", "options", "parallel", "dependencies",
    "pre_build", "post_build", "force_rebuild",
}


def _split_shorthand(ref: str) -> tuple[str, str]:
    parts = ref.strip().strip("/").split("/")
    if len(parts) != 2 or not all(parts):
        raise FormatError(f"无效的简写 '{ref}'，应为 owner/project")
    return parts[0], parts[1]


def _split_url(url: str) -> tuple[str, str]:
    """取 URL 路径的最后两段作为 owner/project，去掉 .git 后缀"""
    path = urlparse(url).path if "://" in url else url.split(":", 1)[-1]
    parts = [p for p in PurePosixPath(path).parts if p not in ("/", "")]
    if len(parts) < 2:
        raise FormatError(f"无法从 URL 推导 owner/project: {url}")
    owner, project = parts[-2], parts[-1]
    if project.endswith(".git"):
        project = project[: -len(".git")]
    return owner, project


def parse_declaration(raw: Any) -> Declaration:
    """区分声明形态

    - "owner/project"                   -> Shorthand
    - {url: ...} 或 {repo: "o/p", ...}  -> Explicit
    - {build: {...}}                    -> LocalOnly
    """
    if isinstance(raw, str):
        owner, project = _split_shorthand(raw)
        return Shorthand(owner=owner, project=project)

    if not isinstance(raw, Mapping):
        raise FormatError(
            f"无效的依赖声明类型 {type(raw).__name__}: 必须是字符串或映射"
        )

    build = raw.get("build")
    if build is not None and not isinstance(build, Mapping):
        raise FormatError(f"build 段必须是映射: {raw!r}")

    url = raw.get("url")
    repo = raw.get("repo")
    if url:
        owner, project = _split_url(url)
    elif repo:
        owner, project = _split_shorthand(repo)
    elif build is not None:
        return LocalOnly(build=dict(build), raw=dict(raw))
    else:
        raise FormatError(
            "依赖声明缺少 url、repo 与 build，无法识别", details=[repr(raw)],
        )

    return Explicit(
        owner=owner,
        project=project,
        url=url,
        hash=raw.get("hash"),
        refspec=raw.get("refspec"),
        build=dict(build) if build is not None else None,
        raw=dict(raw),
    )


def build_spec_from(build: Mapping[str, Any], *, local_source: bool = False) -> BuildSpec:
    """把 build 段转换为 BuildSpec（默认值在构建阶段合并）"""
    unknown = set(build) - _BUILD_FIELDS
    if unknown:
        logger.warning("忽略未知的 build 字段: %s", ", ".join(sorted(unknown)))
    return BuildSpec(
        system=build.get("system"),
        install=build.get("install"),
        options=list(build.get("options") or []),
        parallel=bool(build.get("parallel", False)),
        dependencies=list(build.get("dependencies") or []),
        local_source=local_source,
        pre_build=build.get("pre_build"),
        post_build=build.get("post_build"),
        force_rebuild=bool(build.get("force_rebuild", False)),
    )


class SpecNormalizer:
    """依赖声明规范化器"""

    def __init__(
        self,
        download_root: str = "external",
        *,
        local_source_dir: str = "src",
        local_build_dir: str = "build",
        github_base: str = "https://github.com",
    ) -> None:
        self.download_root = download_root
        self.local_source_dir = local_source_dir
        self.local_build_dir = local_build_dir
        self.github_base = github_base.rstrip("/")

    def github_url(self, owner: str, project: str) -> str:
        return f"{self.github_base}/{owner}/{project}.git"

    def normalize(
        self, raw: Any,
    ) -> tuple[FetchTarget | None, NormalizedDependency | None]:
        """返回 (拉取目标, 构建记录)，两者都可能为 None"""
        decl = parse_declaration(raw)

        if isinstance(decl, LocalOnly):
            dep = NormalizedDependency(
                key=decl.key,
                source_dir=self.local_source_dir,
                build_dir=self.local_build_dir,
                build_spec=build_spec_from(decl.build, local_source=True),
                raw=decl.raw,
            )
            return None, dep

        source_dir = f"{self.download_root}/{decl.project}"
        build_dir = f"{self.download_root}/{decl.project}-build"

        if isinstance(decl, Shorthand):
            target = FetchTarget(
                ident=decl.key,
                url=self.github_url(decl.owner, decl.project),
                source_dir=source_dir,
            )
            return target, None

        target = FetchTarget(
            ident=decl.key,
            url=decl.url or self.github_url(decl.owner, decl.project),
            source_dir=source_dir,
            hash=decl.hash,
            refspec=decl.refspec,
        )
        if decl.build is None:
            return target, None
        dep = NormalizedDependency(
            key=decl.key,
            source_dir=source_dir,
            build_dir=build_dir,
            build_spec=build_spec_from(decl.build),
            raw=decl.raw,
        )
        return target, dep
