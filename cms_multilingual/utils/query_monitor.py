"""
Database Query Monitor

Times every statement on an engine through SQLAlchemy cursor events, feeds the
``cms_db_query*`` metrics and logs statements slower than the threshold. The
translation resolver's two-statement batch lookup shows up here as two
``select`` observations per call.
"""

import logging
import time

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import AsyncEngine

from cms_multilingual.utils.metrics import DB_QUERIES_TOTAL, DB_QUERY_DURATION_SECONDS

logger = logging.getLogger(__name__)

_START_KEY = "cms_query_started"


def statement_operation(statement: str) -> str:
    """Lower-cased leading keyword of a SQL statement ("select", "insert", ...)."""
    words = statement.split(maxsplit=1)
    return words[0].lower() if words else "unknown"


class QueryMonitor:
    def __init__(self, slow_threshold_ms: int = 100):
        self.slow_threshold_ms = slow_threshold_ms
        self._engine: Engine | None = None

    @property
    def installed(self) -> bool:
        return self._engine is not None

    def install(self, engine: AsyncEngine | Engine) -> bool:
        """Attach the listeners; returns False when already attached."""
        if self._engine is not None:
            return False
        sync_engine = engine.sync_engine if isinstance(engine, AsyncEngine) else engine
        event.listen(sync_engine, "before_cursor_execute", self._before)
        event.listen(sync_engine, "after_cursor_execute", self._after)
        self._engine = sync_engine
        logger.info("Query monitor installed (slow threshold %dms)", self.slow_threshold_ms)
        return True

    def uninstall(self) -> None:
        if self._engine is None:
            return
        event.remove(self._engine, "before_cursor_execute", self._before)
        event.remove(self._engine, "after_cursor_execute", self._after)
        self._engine = None

    def _before(self, conn, cursor, statement, parameters, context, executemany) -> None:
        conn.info.setdefault(_START_KEY, []).append(time.perf_counter())

    def _after(self, conn, cursor, statement, parameters, context, executemany) -> None:
        started = conn.info.get(_START_KEY)
        if not started:
            return
        elapsed = time.perf_counter() - started.pop()
        operation = statement_operation(statement)
        DB_QUERIES_TOTAL.labels(operation=operation).inc()
        DB_QUERY_DURATION_SECONDS.labels(operation=operation).observe(elapsed)
        if elapsed * 1000 > self.slow_threshold_ms:
            logger.warning("Slow %s (%.1fms): %s", operation, elapsed * 1000, " ".join(statement.split())[:200])


query_monitor = QueryMonitor()


def install_query_monitor(engine: AsyncEngine | Engine, slow_threshold_ms: int = 100) -> bool:
    query_monitor.slow_threshold_ms = slow_threshold_ms
    return query_monitor.install(engine)
