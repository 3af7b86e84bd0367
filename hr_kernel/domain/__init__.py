"""
Pure domain layer.

Value objects and Protocols with NO dependencies on the ORM, the database
or the clock.  All domain objects are immutable.
"""

from hr_kernel.domain.approval import (
    ApprovalChainDefinition,
    ApprovalState,
    ApprovalStatus,
    ApprovalTimelineStep,
    ApproverKind,
    ChainScope,
    RequestType,
    ScopeKind,
    TimelineStepStatus,
)
from hr_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from hr_kernel.domain.directory import (
    AttendanceAggregate,
    AttendanceProvider,
    EmployeeDirectory,
    EmployeeRecord,
    EmploymentStatus,
)
from hr_kernel.domain.events import (
    DomainEvent,
    EventPublisher,
    LoggingEventPublisher,
    NotificationEventType,
    RecordingEventPublisher,
)
from hr_kernel.domain.snapshot import (
    ConfigurationSnapshot,
    SalaryBreakdown,
    SalaryComponentShare,
)
from hr_kernel.domain.values import PayPeriod, quantize_amount

__all__ = [
    "ApprovalChainDefinition",
    "ApprovalState",
    "ApprovalStatus",
    "ApprovalTimelineStep",
    "ApproverKind",
    "AttendanceAggregate",
    "AttendanceProvider",
    "ChainScope",
    "Clock",
    "ConfigurationSnapshot",
    "DeterministicClock",
    "DomainEvent",
    "EmployeeDirectory",
    "EmployeeRecord",
    "EmploymentStatus",
    "EventPublisher",
    "LoggingEventPublisher",
    "NotificationEventType",
    "PayPeriod",
    "RecordingEventPublisher",
    "RequestType",
    "SalaryBreakdown",
    "SalaryComponentShare",
    "ScopeKind",
    "SystemClock",
    "TimelineStepStatus",
    "quantize_amount",
]
