"""
ORM model package. Import all models here so Alembic autogenerate
can discover every table through the shared Base metadata.
"""
from recordfiles.models.record import Record  # noqa: F401
