"""
Base Service Pattern for the garage booking engine

Services own the transaction boundary. Each lifecycle operation opens one
``transaction()`` block; collaborating services that share the session join
it instead of committing on their own.

Operations decorated with ``measure_operation`` feed the Prometheus
service histograms and log when they run slow.
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Iterator, Optional, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SLOW_OPERATION_SECONDS = 1.0

# Session.info key counting nested transaction() blocks on the same session
_TX_DEPTH_KEY = "garage_booking_tx_depth"


class BaseService:
    """Common session handling, logging and timing for service classes."""

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Run the block as one unit of work.

        The outermost block commits on success and rolls back on any
        exception; inner blocks only track depth. Raw SQLAlchemy errors leave
        as ServiceException.

        Usage:
            with self.transaction():
                self.repository.create(...)
        """
        depth = int(self.db.info.get(_TX_DEPTH_KEY, 0))
        outermost = depth == 0
        self.db.info[_TX_DEPTH_KEY] = depth + 1
        try:
            yield self.db
            if outermost:
                self.db.commit()
        except SQLAlchemyError as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            if outermost:
                self.db.rollback()
            raise ServiceException(f"Database operation failed: {str(e)}") from e
        except Exception as e:
            if outermost:
                self.logger.info(f"Transaction rolled back: {type(e).__name__}")
                self.db.rollback()
            raise
        finally:
            self.db.info[_TX_DEPTH_KEY] = depth

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Time a service method and record the outcome.

        Usage:
            @BaseService.measure_operation("create_booking")
            def create_booking(self, ctx, data):
                ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self: "BaseService", *args: Any, **kwargs: Any) -> Any:
                started = time.perf_counter()
                error_type: Optional[str] = None
                try:
                    return func(self, *args, **kwargs)
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    elapsed = time.perf_counter() - started
                    if elapsed > SLOW_OPERATION_SECONDS:
                        self.logger.warning(
                            f"Slow operation detected: {operation_name} took {elapsed:.2f}s"
                        )
                    prometheus_metrics.record_service_operation(
                        service=self.__class__.__name__,
                        operation=operation_name,
                        duration=elapsed,
                        status="error" if error_type else "success",
                        error_type=error_type,
                    )

            return cast(F, wrapper)

        return decorator

    def log_operation(self, operation: str, **context: Any) -> None:
        """Log a lifecycle call with its identifying context as structured extras."""
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})
