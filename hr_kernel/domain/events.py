"""
Domain events for notification dispatch (``hr_kernel.domain.events``).

Responsibility
--------------
Services emit a ``DomainEvent`` after each committed state change (loan
submitted, payroll approved, ...).  An external notifier renders the
templates; this package never sends email or SMS.

Architecture position
---------------------
**Kernel domain layer**.  ``EventPublisher`` is the seam; the logging and
recording publishers are the only implementations shipped here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol
from uuid import UUID, uuid4

from hr_kernel.logging_config import get_logger

logger = get_logger("domain.events")


class NotificationEventType(str, Enum):
    PAYROLL_CALCULATED = "payroll_calculated"
    PAYROLL_APPROVED_INTERMEDIATE = "payroll_approved_intermediate"
    PAYROLL_APPROVED = "payroll_approved"
    PAYROLL_REJECTED = "payroll_rejected"
    LOAN_SUBMITTED = "loan_submitted"
    LOAN_APPROVED_INTERMEDIATE = "loan_approved_intermediate"
    LOAN_APPROVED = "loan_approved"
    LOAN_REJECTED = "loan_rejected"
    LOAN_INSTALLMENT_PAID = "loan_installment_paid"
    LOAN_FULLY_PAID = "loan_fully_paid"
    LOAN_POSTPONEMENT_SUBMITTED = "loan_postponement_submitted"
    LOAN_POSTPONEMENT_APPROVED_INTERMEDIATE = "loan_postponement_approved_intermediate"
    LOAN_POSTPONEMENT_APPROVED = "loan_postponement_approved"
    LOAN_POSTPONEMENT_REJECTED = "loan_postponement_rejected"
    LOAN_INSTALLMENTS_MASS_POSTPONED = "loan_installments_mass_postponed"


@dataclass(frozen=True)
class DomainEvent:
    """A notification-worthy fact with enough payload to render a message."""

    event_type: NotificationEventType
    entity_type: str
    entity_id: UUID
    employee_id: UUID | None
    occurred_at: datetime
    recipient_ids: tuple[UUID, ...] = ()
    payload: dict[str, Any] = field(default_factory=dict)
    event_id: UUID = field(default_factory=uuid4)


class EventPublisher(Protocol):
    def publish(self, event: DomainEvent) -> None: ...


class LoggingEventPublisher:
    """Publishes events as structured log records."""

    def publish(self, event: DomainEvent) -> None:
        logger.info(
            "domain_event_published",
            extra={
                "event_id": str(event.event_id),
                "event_type": event.event_type.value,
                "entity_type": event.entity_type,
                "entity_id": str(event.entity_id),
                "employee_id": str(event.employee_id) if event.employee_id else None,
                "recipient_ids": [str(r) for r in event.recipient_ids],
                "payload": event.payload,
            },
        )


class RecordingEventPublisher:
    """Keeps published events in memory (tests, batch summaries)."""

    def __init__(self) -> None:
        self.events: list[DomainEvent] = []

    def publish(self, event: DomainEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: NotificationEventType) -> list[DomainEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def clear(self) -> None:
        self.events.clear()
