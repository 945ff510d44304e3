import logging
import os
from typing import Optional

from dotenv import load_dotenv
load_dotenv()

from .db import init_db, make_engine
from .ledger import Ledger
from .services.balance_service import SplitPolicy
from .storage.base import Store
from .storage.memory import MemoryStore
from .storage.sql import SqlStore

logger = logging.getLogger(__name__)

STORAGE_BACKENDS = ("sql", "memory")


def configure_logging(level: Optional[str] = None):
    level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def make_store(storage: Optional[str] = None, database_url: Optional[str] = None) -> Store:
    storage = (storage or os.environ.get("SMARTSPLIT_STORAGE", "sql")).lower()
    if storage not in STORAGE_BACKENDS:
        raise ValueError(f"unknown storage backend {storage!r}, expected one of {STORAGE_BACKENDS}")
    if storage == "memory":
        return MemoryStore()
    engine = make_engine(database_url)
    init_db(engine)
    return SqlStore(engine)


def create_ledger(
    storage: Optional[str] = None,
    database_url: Optional[str] = None,
    split_policy: Optional[str] = None,
) -> Ledger:
    """Build the ledger the environment asks for and load its saved state."""
    configure_logging()
    policy = split_policy or os.environ.get("SMARTSPLIT_SPLIT_POLICY", SplitPolicy.IGNORE.value)
    try:
        policy = SplitPolicy(policy.lower())
    except ValueError:
        raise ValueError(f"unknown split policy {policy!r}") from None
    store = make_store(storage, database_url)
    logger.info("starting ledger with %s store, split policy %s", type(store).__name__, policy.value)
    return Ledger(store=store, split_policy=policy).load()
