"""依赖声明规范化单元测试"""

from __future__ import annotations

import pytest

from srcdeps.core.dep.normalizer import SpecNormalizer, parse_declaration
from srcdeps.core.exceptions import FormatError
from srcdeps.core.models import LOCAL_KEY, Explicit, LocalOnly, Shorthand


@pytest.fixture()
def normalizer() -> SpecNormalizer:
    return SpecNormalizer("external")


class TestParseDeclaration:
    def test_shorthand_string(self) -> None:
        decl = parse_declaration("mosra/corrade")
        assert decl == Shorthand(owner="mosra", project="corrade")
        assert decl.key == "mosra/corrade"

    def test_repo_slot(self) -> None:
        decl = parse_declaration({"repo": "mosra/magnum", "hash": "4ee45ba"})
        assert isinstance(decl, Explicit)
        assert (decl.owner, decl.project, decl.hash) == ("mosra", "magnum", "4ee45ba")
        assert decl.url is None

    @pytest.mark.parametrize("url", [
        "https://github.com/mosra/corrade.git",
        "https://gitlab.example.com/mosra/corrade",
        "git@github.com:mosra/corrade.git",
    ])
    def test_url_owner_project(self, url: str) -> None:
        decl = parse_declaration({"url": url})
        assert isinstance(decl, Explicit)
        assert decl.key == "mosra/corrade"
        assert decl.url == url

    def test_build_only_is_local(self) -> None:
        decl = parse_declaration({"build": {"system": "cmake"}})
        assert isinstance(decl, LocalOnly)
        assert decl.key == LOCAL_KEY

    def test_empty_mapping_is_format_error(self) -> None:
        with pytest.raises(FormatError, match="缺少 url、repo 与 build"):
            parse_declaration({"hash": "abc"})

    @pytest.mark.parametrize("raw", [42, None, ["mosra/corrade"]])
    def test_wrong_type(self, raw) -> None:
        with pytest.raises(FormatError, match="无效的依赖声明类型"):
            parse_declaration(raw)

    @pytest.mark.parametrize("raw", ["corrade", "a/b/c", "/corrade"])
    def test_bad_shorthand(self, raw: str) -> None:
        with pytest.raises(FormatError, match="owner/project"):
            parse_declaration(raw)

    def test_build_must_be_mapping(self) -> None:
        with pytest.raises(FormatError, match="build 段"):
            parse_declaration({"repo": "a/b", "build": ["cmake"]})


class TestNormalize:
    def test_shorthand_fetch_only(self, normalizer: SpecNormalizer) -> None:
        target, dep = normalizer.normalize("mosra/corrade")
        assert dep is None
        assert target is not None
        assert target.url == "https://github.com/mosra/corrade.git"
        assert target.source_dir == "external/corrade"
        assert target.ident == "mosra/corrade"

    def test_explicit_with_build(self, normalizer: SpecNormalizer) -> None:
        raw = {
            "repo": "mosra/corrade",
            "refspec": "v2020.06",
            "build": {"options": ["-DCMAKE_BUILD_TYPE=Release"], "parallel": True},
        }
        target, dep = normalizer.normalize(raw)
        assert target is not None and dep is not None
        assert target.refspec == "v2020.06"
        assert dep.key == "mosra/corrade"
        assert dep.source_dir == "external/corrade"
        assert dep.build_dir == "external/corrade-build"
        assert dep.build_spec.options == ["-DCMAKE_BUILD_TYPE=Release"]
        assert dep.build_spec.parallel is True
        assert dep.build_spec.local_source is False
        assert dep.raw == raw

    def test_custom_url_kept(self, normalizer: SpecNormalizer) -> None:
        target, _ = normalizer.normalize({"url": "https://example.org/x/lib.git"})
        assert target is not None
        assert target.url == "https://example.org/x/lib.git"
        assert target.source_dir == "external/lib"

    def test_local_only(self, normalizer: SpecNormalizer) -> None:
        target, dep = normalizer.normalize({"build": {"dependencies": ["mosra/corrade"]}})
        assert target is None
        assert dep is not None
        assert dep.key == LOCAL_KEY
        assert (dep.source_dir, dep.build_dir) == ("src", "build")
        assert dep.build_spec.local_source is True
        assert dep.build_spec.dependencies == ["mosra/corrade"]

    def test_github_base_configurable(self) -> None:
        n = SpecNormalizer("deps", github_base="https://mirror.example.com/")
        target, _ = n.normalize("a/b")
        assert target is not None
        assert target.url == "https://mirror.example.com/a/b.git"
        assert target.source_dir == "deps/b"
