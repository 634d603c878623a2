# tests/unit/logging/test_log_context.py — v1
"""Tests for logging/context.py — contextual logging variables."""

from __future__ import annotations

from graphdrift.logging.context import (
    clear_context,
    get_context,
    set_phase_context,
    set_run_context,
    set_scope_context,
)


class TestLogContext:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_initial_state(self):
        ctx = get_context()
        assert ctx.scope_id is None
        assert ctx.run_id is None
        assert ctx.component is None
        assert ctx.phase is None

    def test_set_scope_context(self):
        set_scope_context("acme")
        assert get_context().scope_id == "acme"

    def test_set_run_context_resets_phase(self):
        set_phase_context("hyde")
        set_run_context("drift_search", "abc123")
        ctx = get_context()
        assert ctx.component == "drift_search"
        assert ctx.run_id == "abc123"
        assert ctx.phase is None

    def test_as_dict_filters_none(self):
        set_scope_context("acme")
        d = get_context().as_dict()
        assert d == {"scope_id": "acme"}

    def test_clear(self):
        set_scope_context("acme")
        set_run_context("community_detector", "r1")
        set_phase_context("followup")
        clear_context()
        assert get_context().as_dict() == {}
