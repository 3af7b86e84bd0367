"""
HR Kernel

Shared foundation for the payroll and loan core:
- Approval state machine types and configuration snapshot
- Typed exception hierarchy
- Structured JSON logging
- SQLAlchemy declarative base and engine management
- Injectable clock and domain events
"""

__version__ = "0.1.0"
