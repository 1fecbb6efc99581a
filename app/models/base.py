"""SQLAlchemy declarative Base with deterministic constraint names across dialects."""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

# Migrations name constraints explicitly; these must produce the same names.
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)
