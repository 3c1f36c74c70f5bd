from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base for the service's ORM models.

    Models inheriting from it are registered in `Base.metadata`, which
    `init_db()` uses to create missing tables at startup.
    """
    pass
