"""Refspec 解析器单元测试"""

from __future__ import annotations

import pytest

from srcdeps.core.dep.resolver import RefspecResolver, parse_ls_remote
from srcdeps.core.exceptions import ResolutionError

URL = "https://github.com/mosra/corrade.git"

LS_REMOTE = (
    "4ee45ba341febe1744733abd1449460124363c8f\tHEAD\n"
    "4ee45ba341febe1744733abd1449460124363c8f\trefs/heads/master\n"
    "9a1b2c3d4e5f60718293a4b5c6d7e8f901234567\trefs/tags/v2020.06\n"
    "9a1b2c3ffffffffffffffffffffffffffffffff0\trefs/tags/v2019.10\n"
)


@pytest.fixture()
def resolver(fake_runner) -> RefspecResolver:
    fake_runner.outputs[("git", "ls-remote")] = LS_REMOTE
    return RefspecResolver(fake_runner)


class TestResolve:
    def test_hash_expands_to_full_sha(self, resolver: RefspecResolver) -> None:
        assert resolver.resolve("mosra/corrade", URL, hash="9a1b2c3d") == (
            "9a1b2c3d4e5f60718293a4b5c6d7e8f901234567"
        )

    def test_ambiguous_prefix_first_listed_wins(self, resolver: RefspecResolver) -> None:
        assert resolver.resolve("mosra/corrade", URL, hash="9a1b2c3") == (
            "9a1b2c3d4e5f60718293a4b5c6d7e8f901234567"
        )

    def test_unknown_hash_raises(self, resolver: RefspecResolver) -> None:
        with pytest.raises(ResolutionError, match="mosra/corrade"):
            resolver.resolve("mosra/corrade", URL, hash="deadbee")

    def test_hash_takes_precedence_over_refspec(self, resolver: RefspecResolver) -> None:
        got = resolver.resolve("mosra/corrade", URL, hash="4ee45ba", refspec="v2020.06")
        assert got == "4ee45ba341febe1744733abd1449460124363c8f"

    def test_refspec_verbatim(self, resolver: RefspecResolver, fake_runner) -> None:
        assert resolver.resolve("mosra/corrade", URL, refspec="v2020.06") == "v2020.06"
        assert fake_runner.calls == []

    def test_latest_prefers_main(self, fake_runner) -> None:
        fake_runner.outputs[("git", "ls-remote")] = (
            "1111111111111111111111111111111111111111\trefs/heads/master\n"
            "2222222222222222222222222222222222222222\trefs/heads/main\n"
        )
        got = RefspecResolver(fake_runner).resolve("o/p", URL)
        assert got == "2222222222222222222222222222222222222222"
        cmd, args, _mode = fake_runner.calls[0]
        assert args == ["ls-remote", URL, "--heads", "refs/heads/main", "refs/heads/master"]

    def test_latest_falls_back_to_master(self, resolver: RefspecResolver) -> None:
        assert resolver.resolve("o/p", URL) == "4ee45ba341febe1744733abd1449460124363c8f"

    def test_no_branch_raises(self, fake_runner) -> None:
        fake_runner.outputs[("git", "ls-remote")] = ""
        with pytest.raises(ResolutionError, match="o/p"):
            RefspecResolver(fake_runner).resolve("o/p", URL)


class TestParseLsRemote:
    def test_skips_malformed_lines(self) -> None:
        assert parse_ls_remote("abc\trefs/heads/x\n\ngarbage\n") == [("abc", "refs/heads/x")]
