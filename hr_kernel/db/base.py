"""
Module: hr_kernel.db.base
Responsibility: Declarative bases for the HR tables: uuid primary keys, the
    column types used for money and dates, and the audit columns every
    payroll and loan row carries.
Architecture position: Kernel > DB.  Imports nothing else from the kernel.

Invariants enforced:
    - Every table has a uuid4 ``id``; ids are stored as 36-char strings so
      SQLite and PostgreSQL behave the same.
    - ``Decimal`` columns are Numeric(18, 4): salaries, installments and
      balances keep four fractional digits.
    - ``TrackedBase`` rows record who created them and who changed them last.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, Date, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """``uuid.UUID`` in Python, ``VARCHAR(36)`` in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    """Declarative base; ``Mapped[...]`` annotations pick their column type here."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(18, 4, asdecimal=True),
        datetime: DateTime(timezone=True),
        date: Date,
        UUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Adds creation and modification stamps.

    ``created_by_id`` is the actor who submitted or calculated the row;
    services set ``updated_by_id`` on every approval, payment or
    postponement that changes it.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(),
    )
    created_by_id: Mapped[UUID] = mapped_column()
    updated_by_id: Mapped[UUID | None] = mapped_column()
