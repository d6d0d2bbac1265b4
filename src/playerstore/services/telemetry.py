"""Span tracing for service calls.

Off by default; the only cost then is one ``ContextVar.get`` per call.
``--verbose`` turns it on, and every ``@traced`` service method then
returns its span tree under ``meta["telemetry"]``. Each span also counts
the SQL statements executed while it is the innermost active span, fed
by a ``before_cursor_execute`` hook on the store engine.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ParamSpec, TypeVar

import structlog
from sqlalchemy import event

from playerstore.services.result import ServiceResult

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = structlog.get_logger("playerstore.telemetry")

_enabled: ContextVar[bool] = ContextVar("playerstore_telemetry", default=False)
_current_span: ContextVar[Span | None] = ContextVar("playerstore_span", default=None)


@dataclass
class Span:
    """One timed region; children are nested ``trace_span`` blocks."""

    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    started: float = field(default_factory=time.perf_counter)
    finished: float | None = None
    statements: int = 0
    annotations: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float:
        if self.finished is None:
            return 0.0
        return (self.finished - self.started) * 1000

    @property
    def total_statements(self) -> int:
        """Statements issued by this span and everything under it."""
        return self.statements + sum(c.total_statements for c in self.children)

    def end(self) -> None:
        self.finished = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.statements:
            out["statements"] = self.statements
        if self.annotations:
            out["annotations"] = dict(self.annotations)
        if self.children:
            out["children"] = [c.to_dict() for c in self.children]
        return out


@contextmanager
def _activate(span: Span) -> Generator[Span]:
    token = _current_span.set(span)
    try:
        yield span
    finally:
        span.end()
        _current_span.reset(token)


@contextmanager
def trace_span(name: str) -> Generator[Span | None]:
    """Open a child span under the active one.

    Yields None when telemetry is off or nothing is being traced, so
    callers guard annotations with ``if span:``.
    """
    parent = _current_span.get() if _enabled.get() else None
    if parent is None:
        yield None
        return
    child = Span(name=name, parent=parent)
    parent.children.append(child)
    with _activate(child):
        yield child


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Trace a service method as a root span.

    A :class:`ServiceResult` return value comes back with the span tree in
    ``meta["telemetry"]``; anything else is returned untouched.
    """

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        span = Span(name=func.__qualname__)
        ok = False
        try:
            with _activate(span):
                result = func(*args, **kwargs)
            ok = not isinstance(result, ServiceResult) or result.ok
        finally:
            log.debug(
                "span.complete",
                span_name=span.name,
                duration_ms=round(span.duration_ms, 2),
                statements=span.total_statements,
                ok=ok,
            )
        if isinstance(result, ServiceResult):
            meta = {**(result.meta or {}), "telemetry": span.to_dict()}
            return result.model_copy(update={"meta": meta})  # type: ignore[return-value]
        return result

    return wrapper


def _count_statement(conn, cursor, statement, parameters, context, executemany) -> None:
    span = _current_span.get()
    if span is not None:
        span.statements += 1


def instrument_engine(engine: Engine) -> None:
    """Attach the statement counter to *engine* (idempotent)."""
    if not event.contains(engine, "before_cursor_execute", _count_statement):
        event.listen(engine, "before_cursor_execute", _count_statement)


def enable_telemetry() -> None:
    """Turn tracing on for the current context (``--verbose``)."""
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)


def get_current_span() -> Span | None:
    """The innermost active span, or None when not tracing."""
    return _current_span.get() if _enabled.get() else None
