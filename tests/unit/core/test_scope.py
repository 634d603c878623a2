# tests/unit/core/test_scope.py — v1
"""Tests for core/scope.py — scope context variable and per-scope locks."""

from __future__ import annotations

import asyncio

import pytest

from graphdrift.core.scope import (
    ScopeLockRegistry,
    ScopeNotSetError,
    current_scope,
    current_scope_or_none,
    scope_context,
)
from graphdrift.logging.context import get_context


class TestScopeContext:
    def test_no_scope_raises(self):
        with pytest.raises(ScopeNotSetError):
            current_scope()

    def test_no_scope_or_none(self):
        assert current_scope_or_none() is None

    def test_sets_and_restores(self):
        with scope_context("acme") as scope_id:
            assert scope_id == "acme"
            assert current_scope() == "acme"
            assert get_context().scope_id == "acme"
        assert current_scope_or_none() is None
        assert get_context().scope_id is None

    def test_nested(self):
        with scope_context("outer"):
            with scope_context("inner"):
                assert current_scope() == "inner"
            assert current_scope() == "outer"
            assert get_context().scope_id == "outer"

    def test_restored_on_error(self):
        with pytest.raises(RuntimeError):
            with scope_context("acme"):
                raise RuntimeError("boom")
        assert current_scope_or_none() is None

    def test_empty_scope_rejected(self):
        with pytest.raises(ValueError):
            with scope_context(""):
                pass

    def test_fixture_scope(self, scope):
        assert current_scope() == scope == "scope-1"

    @pytest.mark.asyncio
    async def test_tasks_keep_their_own_scope(self):
        async def worker(scope_id: str) -> str:
            with scope_context(scope_id):
                await asyncio.sleep(0)
                return current_scope()

        results = await asyncio.gather(worker("a"), worker("b"), worker("c"))
        assert results == ["a", "b", "c"]


class TestScopeLockRegistry:
    def test_same_lock_per_scope(self):
        locks = ScopeLockRegistry()
        assert locks.lock_for("a") is locks.lock_for("a")
        assert locks.lock_for("a") is not locks.lock_for("b")

    def test_unknown_scope_not_locked(self):
        assert ScopeLockRegistry().is_locked("a") is False

    @pytest.mark.asyncio
    async def test_hold_locks_scope(self):
        locks = ScopeLockRegistry()
        async with locks.hold("a"):
            assert locks.is_locked("a")
            assert not locks.is_locked("b")
        assert not locks.is_locked("a")

    @pytest.mark.asyncio
    async def test_hold_serializes_same_scope(self):
        locks = ScopeLockRegistry()
        events: list[str] = []

        async def job(name: str) -> None:
            async with locks.hold("a"):
                events.append(f"{name}-start")
                await asyncio.sleep(0.01)
                events.append(f"{name}-end")

        await asyncio.gather(job("one"), job("two"))
        assert events == ["one-start", "one-end", "two-start", "two-end"]

    @pytest.mark.asyncio
    async def test_different_scopes_run_concurrently(self):
        locks = ScopeLockRegistry()
        events: list[str] = []

        async def job(scope_id: str) -> None:
            async with locks.hold(scope_id):
                events.append(f"{scope_id}-start")
                await asyncio.sleep(0.01)
                events.append(f"{scope_id}-end")

        await asyncio.gather(job("a"), job("b"))
        assert events[:2] == ["a-start", "b-start"]
