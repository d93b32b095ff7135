"""Per-request SQL statement counting.

The request middleware wraps every request in ``track()`` and
logs a warning when a request issues more statements than configured.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field

from sqlalchemy import event
from sqlalchemy.engine import Engine


@dataclass
class QueryTally:
    count: int = 0
    statements: list[str] = field(default_factory=list)
    keep_statements: bool = False

    def record(self, statement: str) -> None:
        self.count += 1
        if self.keep_statements:
            self.statements.append(statement)


_current_tally: ContextVar[QueryTally | None] = ContextVar(
    "current_query_tally", default=None
)


class QueryCounter:
    """Counts statements executed on the attached engines."""

    def __init__(self) -> None:
        self._engines: list[Engine] = []

    def attach(self, engine: Engine) -> None:
        if engine in self._engines:
            return
        event.listen(engine, "before_cursor_execute", self._before_cursor_execute)
        self._engines.append(engine)

    def detach(self) -> None:
        for engine in self._engines:
            event.remove(engine, "before_cursor_execute", self._before_cursor_execute)
        self._engines.clear()

    def _before_cursor_execute(
        self, conn, cursor, statement, parameters, context, executemany
    ) -> None:
        tally = _current_tally.get()
        if tally is not None:
            tally.record(statement)

    @contextmanager
    def track(self, keep_statements: bool = False) -> Iterator[QueryTally]:
        """Count statements executed in the current context until exit."""
        tally = QueryTally(keep_statements=keep_statements)
        token = _current_tally.set(tally)
        try:
            yield tally
        finally:
            _current_tally.reset(token)
