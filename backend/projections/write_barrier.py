# projections/write_barrier.py
"""
Thread-local write contexts guarding ledger-owned tables.

Ledger tables (accounts' balance columns, journal entries and their lines)
may only be written while the matching context is active:

    ledger      - accounting.ledger (posting and reversing entries)
    command     - command-owned write models (sequences, inventory transactions)
    projection  - balance rebuilds in projections.balances
    bootstrap   - chart-of-accounts seeding

Tests run with settings.TESTING=True, which lets fixtures write directly.
"""

from contextlib import contextmanager
import threading

from django.conf import settings


_state = threading.local()


def _context_stack() -> list[str]:
    stack = getattr(_state, "write_context_stack", None)
    if stack is None:
        stack = []
        _state.write_context_stack = stack
    return stack


def current_write_context() -> str | None:
    stack = _context_stack()
    return stack[-1] if stack else None


def write_context_allowed(allowed_contexts: set[str]) -> bool:
    ctx = current_write_context()
    if ctx is None:
        return False
    return ctx in allowed_contexts


def assert_write_allowed(model_name: str, allowed_contexts: set[str], action: str = "save") -> None:
    if write_context_allowed(allowed_contexts) or getattr(settings, "TESTING", False):
        return
    contexts = ", ".join(f"{name}_writes_allowed()" for name in sorted(allowed_contexts))
    raise RuntimeError(
        f"{model_name} is ledger-owned. Direct {action} calls are only allowed within {contexts}."
    )


@contextmanager
def _push_write_context(name: str):
    stack = _context_stack()
    stack.append(name)
    try:
        yield
    finally:
        stack.pop()


@contextmanager
def ledger_writes_allowed():
    with _push_write_context("ledger"):
        yield


@contextmanager
def command_writes_allowed():
    with _push_write_context("command"):
        yield


@contextmanager
def projection_writes_allowed():
    with _push_write_context("projection"):
        yield


@contextmanager
def bootstrap_writes_allowed():
    with _push_write_context("bootstrap"):
        yield
