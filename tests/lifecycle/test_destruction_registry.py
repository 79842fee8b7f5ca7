"""
Tests for DestructionRegistry: ordering, run-once, cancellation during a pass.
"""

import pytest

from lifecycle.destruction_registry import DestructionRegistry
from models.enums import LogCategory, LogLevel
from utils.logger import get_logger


def test_run_all_invokes_each_entry_once_in_order():
    registry = DestructionRegistry()
    calls = []
    for name in ("a", "b", "c"):
        registry.register(lambda name=name: calls.append(name))

    assert registry.run_all() == 3
    assert calls == ["a", "b", "c"]

    # Already-run entries never run again
    assert registry.run_all() == 0
    assert calls == ["a", "b", "c"]


def test_cancel_before_run_removes_entry():
    registry = DestructionRegistry()
    calls = []
    registry.register(lambda: calls.append("kept"))
    token = registry.register(lambda: calls.append("cancelled"))

    assert token.pending
    assert token.cancel() is True
    assert not token.pending
    assert len(registry) == 1

    registry.run_all()
    assert calls == ["kept"]


def test_cancel_twice_and_after_run_is_harmless():
    registry = DestructionRegistry()
    calls = []
    token = registry.register(lambda: calls.append("x"))
    other = registry.register(lambda: calls.append("y"))

    assert other() is True      # calling the token cancels
    assert other() is False

    registry.run_all()
    assert calls == ["x"]
    assert token.cancel() is False


def test_entry_cancelling_next_entry_suppresses_it():
    """Entry k cancels entry k+1 during the pass: k+1 never runs."""
    registry = DestructionRegistry()
    calls = []
    tokens = {}

    def first():
        calls.append("first")
        tokens["second"].cancel()

    registry.register(first)
    tokens["second"] = registry.register(lambda: calls.append("second"))
    registry.register(lambda: calls.append("third"))

    assert registry.run_all() == 2
    assert calls == ["first", "third"]


def test_entry_registered_during_pass_runs_in_same_pass():
    registry = DestructionRegistry()
    calls = []

    def first():
        calls.append("first")
        registry.register(lambda: calls.append("late"))

    registry.register(first)
    registry.register(lambda: calls.append("second"))

    assert registry.run_all() == 3
    assert calls == ["first", "second", "late"]


def test_entry_cancelling_itself_during_run_is_noop():
    registry = DestructionRegistry()
    calls = []
    tokens = []

    def self_cancelling():
        calls.append("ran")
        assert tokens[0].cancel() is False

    tokens.append(registry.register(self_cancelling))
    registry.run_all()
    assert calls == ["ran"]


def test_second_run_only_runs_new_registrations():
    registry = DestructionRegistry()
    calls = []
    registry.register(lambda: calls.append(1))
    registry.run_all()

    registry.register(lambda: calls.append(2))
    assert registry.run_all() == 1
    assert calls == [1, 2]


def test_stale_token_from_previous_pass_cannot_cancel_new_entry():
    registry = DestructionRegistry()
    calls = []
    old_token = registry.register(lambda: calls.append("old"))
    registry.run_all()

    # Same index in the compacted arena, different generation
    registry.register(lambda: calls.append("new"))
    assert old_token.cancel() is False

    registry.run_all()
    assert calls == ["old", "new"]


def test_raising_callback_is_logged_and_pass_continues():
    registry = DestructionRegistry()
    calls = []
    records = []

    def sink(level, category, message, details):
        records.append((level, category, message))

    def broken():
        raise RuntimeError("boom")

    registry.register(broken)
    registry.register(lambda: calls.append("after"))

    logger = get_logger()
    logger.add_sink(sink)
    try:
        assert registry.run_all() == 2
    finally:
        logger.remove_sink(sink)

    assert calls == ["after"]
    assert any(
        level is LogLevel.ERROR and category is LogCategory.SHUTDOWN and "boom" in message
        for level, category, message in records
    )


def test_register_rejects_non_callable():
    registry = DestructionRegistry()
    with pytest.raises(TypeError):
        registry.register("not callable")
