import pytest

from smartsplit.db import init_db, make_engine
from smartsplit.ledger import Ledger
from smartsplit.storage.sql import SqlStore


@pytest.fixture
def ledger():
    return Ledger()


@pytest.fixture
def trio(ledger):
    alice = ledger.add_person("Alice", "🦊")
    bob = ledger.add_person("Bob", "🐻")
    carol = ledger.add_person("Carol", "🐼")
    return alice, bob, carol


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(engine):
    return SqlStore(engine)
