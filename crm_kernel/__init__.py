"""
CRM Kernel -- shared foundation for the project budgeting engine.

Provides:
- Structured JSON logging
- Typed, code-carrying exceptions
- Injectable clocks
- Immutable domain records for projects, budgets and time entries
- SQLAlchemy declarative base and engine utilities
"""

__version__ = "0.1.0"
