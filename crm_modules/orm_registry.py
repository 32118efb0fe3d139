"""Imports every module's ORM models so ``Base.metadata`` knows all tables."""

ORM_MODULES = (
    "crm_modules.project.orm",
    "crm_modules.time_tracking.orm",
)


def import_all_orm_models() -> None:
    """Called by ``crm_kernel.db.engine.create_tables``; safe to repeat."""
    from importlib import import_module

    for name in ORM_MODULES:
        import_module(name)
