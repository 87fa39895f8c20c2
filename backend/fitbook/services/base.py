# backend/fitbook/services/base.py
"""
Base Service Pattern for the fitbook booking engine.

Provides common functionality for all service classes including:
- Transaction management
- After-commit callbacks (real-time delivery, domain events)
- Logging
- Performance monitoring
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Iterator, List, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException, ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

# Session.info key holding callables to run once the unit of work commits
AFTER_COMMIT_KEY = "fitbook_after_commit"

SLOW_OPERATION_SECONDS = 1.0


class BaseService:
    """
    Base class for all service layer components.

    Services sharing one session share one unit of work: whichever service
    opens the outermost ``transaction()`` commits it, and callbacks queued by
    any of them with ``after_commit()`` run only after that commit.
    """

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def _depth(self) -> int:
        return int(self.db.info.get("fitbook_tx_depth", 0))

    @_depth.setter
    def _depth(self, value: int) -> None:
        self.db.info["fitbook_tx_depth"] = value

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Context manager for database transactions.

        Usage:
            with self.transaction():
                # Do multiple operations
                self.repository.create(...)
                # Note: commit is handled automatically

        Nested calls join the outer transaction; only the outermost block
        commits or rolls back.
        """
        outermost = self._depth == 0
        self._depth = self._depth + 1
        try:
            yield self.db
            if outermost:
                self.db.commit()
                self.logger.debug("Transaction committed successfully")
        except (SQLAlchemyError, RepositoryException) as e:
            if outermost:
                self.logger.error(f"Transaction failed: {str(e)}")
                self._discard_after_commit()
                self.db.rollback()
            raise ServiceException(f"Database operation failed: {str(e)}") from e
        except Exception:
            if outermost:
                self._discard_after_commit()
                self.db.rollback()
            raise
        finally:
            self._depth = self._depth - 1

        if outermost:
            self._run_after_commit()

    def after_commit(self, callback: Callable[[], Any]) -> None:
        """Queue ``callback`` to run once the current unit of work commits."""
        self.db.info.setdefault(AFTER_COMMIT_KEY, []).append(callback)

    def _discard_after_commit(self) -> None:
        pending = self.db.info.pop(AFTER_COMMIT_KEY, [])
        if pending:
            self.logger.debug(f"Discarded {len(pending)} after-commit callbacks on rollback")

    def _run_after_commit(self) -> None:
        pending: List[Callable[[], Any]] = self.db.info.pop(AFTER_COMMIT_KEY, [])
        for callback in pending:
            try:
                callback()
            except Exception as exc:
                # The data is already committed; delivery failures are reported, not raised
                self.logger.error(
                    f"After-commit callback failed: {exc}",
                    exc_info=True,
                    extra={"callback": getattr(callback, "__qualname__", repr(callback))},
                )

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Decorator to measure operation performance.

        Usage:
            @BaseService.measure_operation("create_booking")
            def create(self, ...):
                ...
        """

        def decorator(func: F) -> F:
            func._operation_name = operation_name  # type: ignore[attr-defined]

            @wraps(func)
            def wrapper(self, *args, **kwargs):
                start_time = time.time()
                success = False
                error_type = None

                try:
                    result = func(self, *args, **kwargs)
                    success = True
                    return result
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    elapsed = time.time() - start_time

                    if elapsed > SLOW_OPERATION_SECONDS and hasattr(self, "logger"):
                        self.logger.warning(
                            f"Slow operation detected: {operation_name} took {elapsed:.2f}s"
                        )

                    prometheus_metrics.record_service_operation(
                        service=self.__class__.__name__,
                        operation=operation_name,
                        duration=elapsed,
                        status="success" if success else "error",
                        error_type=error_type,
                    )

            return cast(F, wrapper)

        return decorator

    def log_operation(self, operation: str, **context: Any) -> None:
        """
        Log an operation with context.

        Args:
            operation: Operation name
            **context: Additional context to log
        """
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})
