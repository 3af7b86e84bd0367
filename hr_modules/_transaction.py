"""
Module transaction boundary (``hr_modules._transaction``).

Responsibility
--------------
Shared commit/rollback/retry handling for module services.  Each public
service method runs its read-modify-write as an *operation* callable; the
helper commits on success, rolls back on any exception, retries exactly
once on an optimistic-lock or uniqueness conflict, and publishes the
operation's domain events only after the commit.

Invariants enforced
-------------------
* One transaction per public method.
* At most two attempts; a second conflict surfaces as
  ``ConcurrentModificationError``.
* No events are published for a rolled-back attempt.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from hr_kernel.domain.clock import Clock, SystemClock
from hr_kernel.domain.events import (
    DomainEvent,
    EventPublisher,
    LoggingEventPublisher,
    NotificationEventType,
)
from hr_kernel.exceptions import ConcurrentModificationError
from hr_kernel.logging_config import LogContext, get_logger

logger = get_logger("modules.transaction")

T = TypeVar("T")

MAX_ATTEMPTS = 2

Operation = Callable[[list[DomainEvent]], T]


def commit_or_rollback(
    session: Session,
    publisher: EventPublisher,
    operation: Operation,
    *,
    entity_type: str,
    entity_id: UUID | str | None,
    max_attempts: int = MAX_ATTEMPTS,
) -> T:
    """Run ``operation`` in its own transaction with one conflict retry.

    ``operation`` receives a fresh list to append events to on every
    attempt and must re-read whatever it modifies.
    """
    for attempt in range(1, max_attempts + 1):
        events: list[DomainEvent] = []
        try:
            result = operation(events)
            session.commit()
        except (IntegrityError, StaleDataError) as exc:
            session.rollback()
            if attempt == max_attempts:
                logger.warning(
                    "concurrent_modification_exhausted",
                    extra={
                        "entity_type": entity_type,
                        "entity_id": str(entity_id),
                        "attempts": attempt,
                    },
                )
                raise ConcurrentModificationError(
                    entity_type, str(entity_id), attempt,
                ) from exc
            logger.info(
                "concurrent_modification_retry",
                extra={
                    "entity_type": entity_type,
                    "entity_id": str(entity_id),
                    "attempt": attempt,
                    "error": type(exc).__name__,
                },
            )
            continue
        except Exception:
            session.rollback()
            raise

        for event in events:
            publisher.publish(event)
        return result

    raise AssertionError("unreachable")


class ModuleService:
    """Base for module services: session, clock, publisher, transaction helper."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        publisher: EventPublisher | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._publisher = publisher or LoggingEventPublisher()

    def _transact(
        self,
        operation: Operation,
        *,
        entity_type: str,
        entity_id: UUID | str | None,
    ) -> T:
        with LogContext.bind(entity_id=entity_id):
            return commit_or_rollback(
                self._session,
                self._publisher,
                operation,
                entity_type=entity_type,
                entity_id=entity_id,
            )

    def _event(
        self,
        event_type: NotificationEventType,
        *,
        entity_type: str,
        entity_id: UUID,
        employee_id: UUID | None,
        recipients: Iterable[UUID | None] = (),
        **payload: Any,
    ) -> DomainEvent:
        """Build an event stamped with the service clock; None recipients are dropped."""
        unique: list[UUID] = []
        for recipient in recipients:
            if recipient is not None and recipient not in unique:
                unique.append(recipient)
        return DomainEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            employee_id=employee_id,
            occurred_at=self._clock.now(),
            recipient_ids=tuple(unique),
            payload=payload,
        )
