"""Tests for resolvers/pr_created.py"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from panesync.resolvers.command import CommandResult
from panesync.resolvers.pr_created import PrCreatedResolver, parse_pr_branches


def _gh_output(*branches: str) -> CommandResult:
    payload = [{"headRefName": b, "number": i} for i, b in enumerate(branches, start=100)]
    return CommandResult(returncode=0, stdout=json.dumps(payload))


class TestParsePrBranches:
    """Tests for parse_pr_branches."""

    def test_parse(self):
        stdout = json.dumps([{"headRefName": "a"}, {"headRefName": ""}, {"number": 3}, "junk"])
        assert parse_pr_branches(stdout) == frozenset({"a"})

    @pytest.mark.parametrize("stdout", ["", "   ", "not json", '{"headRefName": "a"}'])
    def test_invalid(self, stdout):
        assert parse_pr_branches(stdout) is None

    def test_empty_list(self):
        assert parse_pr_branches("[]") == frozenset()


class TestPrCreatedResolver:
    """Tests for PrCreatedResolver."""

    @pytest.mark.asyncio
    async def test_missing_arguments(self, clock):
        """Test missing repo root or branch returns None without calling gh."""
        runner = AsyncMock()
        resolver = PrCreatedResolver(runner=runner, clock=clock)

        assert await resolver.resolve(None, "feature/foo") is None
        assert await resolver.resolve("/repo", None) is None
        runner.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_finds_pr_for_branch(self, clock):
        """Test a branch listed by gh resolves to True."""
        runner = AsyncMock(return_value=_gh_output("feature/foo"))
        resolver = PrCreatedResolver(runner=runner, clock=clock)

        assert await resolver.resolve("/repo", "feature/foo") is True
        runner.assert_awaited_once_with(
            ["gh", "pr", "list", "--state", "all", "--limit", "1000", "--json", "headRefName"],
            cwd="/repo",
            timeout=5.0,
        )

    @pytest.mark.asyncio
    async def test_reuses_snapshot_across_branches(self, clock):
        """Test one snapshot answers queries for different branches."""
        runner = AsyncMock(return_value=_gh_output("feature/bar"))
        resolver = PrCreatedResolver(runner=runner, clock=clock)

        assert await resolver.resolve("/repo", "feature/bar") is True
        assert await resolver.resolve("/repo", "feature/baz") is False
        assert runner.await_count == 1

    @pytest.mark.asyncio
    async def test_snapshot_expires(self, clock):
        """Test the snapshot is refetched after the TTL."""
        runner = AsyncMock(side_effect=[_gh_output(), _gh_output("feature/new")])
        resolver = PrCreatedResolver(ttl=60.0, runner=runner, clock=clock)

        assert await resolver.resolve("/repo", "feature/new") is False
        clock.advance(61.0)
        assert await resolver.resolve("/repo", "feature/new") is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "result",
        [
            None,
            CommandResult(returncode=1, stdout="", stderr="gh: not logged in"),
            CommandResult(returncode=0, stdout="garbage"),
        ],
    )
    async def test_failed_fetch_is_unknown(self, clock, result):
        """Test a failed fetch answers None and is cached until expiry."""
        runner = AsyncMock(return_value=result)
        resolver = PrCreatedResolver(runner=runner, clock=clock)

        assert await resolver.resolve("/repo", "main") is None
        assert await resolver.resolve("/repo", "dev") is None
        assert runner.await_count == 1

    @pytest.mark.asyncio
    async def test_runner_exception_is_unknown(self, clock):
        """Test an exception from the runner is swallowed."""
        resolver = PrCreatedResolver(runner=AsyncMock(side_effect=OSError("gh missing")), clock=clock)
        assert await resolver.resolve("/repo", "main") is None
        assert resolver.inflight_count == 0

    @pytest.mark.asyncio
    async def test_concurrent_misses_share_fetch(self, clock):
        """Test concurrent misses for one repo wait on a single gh call."""
        gate = asyncio.Event()
        calls = []

        async def runner(args, cwd=None, timeout=None):
            calls.append(cwd)
            await gate.wait()
            return _gh_output("a")

        resolver = PrCreatedResolver(runner=runner, clock=clock)
        first = asyncio.create_task(resolver.resolve("/repo", "a"))
        second = asyncio.create_task(resolver.resolve("/repo", "b"))
        await asyncio.sleep(0)
        assert resolver.inflight_count == 1

        gate.set()
        assert await asyncio.gather(first, second) == [True, False]
        assert calls == ["/repo"]
        assert resolver.inflight_count == 0

    @pytest.mark.asyncio
    async def test_repos_are_independent(self, clock):
        """Test each repo root gets its own snapshot."""
        runner = AsyncMock(side_effect=[_gh_output("a"), _gh_output("b")])
        resolver = PrCreatedResolver(runner=runner, clock=clock)

        assert await resolver.resolve("/one", "a") is True
        assert await resolver.resolve("/two", "a") is False
        assert runner.await_count == 2
