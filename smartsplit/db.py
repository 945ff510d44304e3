import os
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DB_FILE = os.path.join(BASE_DIR, "db.sqlite")
DEFAULT_DATABASE_URL = f"sqlite:///{DB_FILE}"


def make_engine(url: Optional[str] = None) -> Engine:
    url = url or os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)
    kwargs = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        # an in-memory database lives only as long as its single connection
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(url, echo=False, **kwargs)


def init_db(engine: Engine):
    # Import models so SQLModel.metadata includes them
    import smartsplit.models.person, smartsplit.models.expense  # noqa: F401
    SQLModel.metadata.create_all(engine)
