"""
Module ORM Registry (``hr_modules._orm_registry``).

Responsibility
--------------
Ensure all SQLAlchemy ORM models are imported so that ``Base.metadata``
contains their table definitions before ``create_tables()`` runs.

Architecture position
---------------------
**Modules layer** -- utility.  Called lazily from
``hr_kernel.db.engine.create_tables``; nothing in ``hr_kernel`` imports it
at module load time.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``hr_modules.*.orm`` module.

    Idempotent -- repeated calls are harmless.
    """
    import hr_kernel.models  # noqa: F401
    import hr_modules.loans.orm  # noqa: F401
    import hr_modules.payroll.orm  # noqa: F401
