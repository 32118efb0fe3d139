"""
Time Tracking Module (``crm_modules.time_tracking``).

Responsibility
--------------
Thin glue for time capture: manual entries, the live timer, filtered
lists and time reports.  Costing, validation and aggregation are
delegated to ``crm_engines``.

Architecture position
---------------------
**Modules layer** -- ORM model, the time entry store and a service facade.
"""

from crm_modules.time_tracking.store import SqlTimeEntryStore, TimeEntryStore

__all__ = [
    "SqlTimeEntryStore",
    "TimeEntryStore",
]
