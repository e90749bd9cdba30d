import os
import threading

import pytest
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import VersionConflict
from app.core.security import hash_password
from app.db.base import Base
from app.db.session import build_engine
from app.models.inventory_item import InventoryItem
from app.models.role import Role
from app.models.user import User
from app.services.stock_ledger import apply_stock_delta, ledger_sum


POSTGRES_URL = os.environ.get("STOCKROOM_TEST_POSTGRES_URL")

pytestmark = [
    pytest.mark.postgres,
    pytest.mark.skipif(not POSTGRES_URL, reason="STOCKROOM_TEST_POSTGRES_URL is not set"),
]


@pytest.fixture
def pg_sessions():
    engine = build_engine(POSTGRES_URL)
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


def test_parallel_writers_with_same_version(pg_sessions):
    with pg_sessions() as db:
        role = Role(name="ADMIN", permissions="[]")
        db.add(role)
        db.flush()
        user = User(email="race@stockroom.test", name="Race", hashed_password=hash_password("x" * 8), role_id=role.id)
        db.add(user)
        db.flush()
        item = InventoryItem(sku="RACE-1", name="Race", quantity_on_hand=0, item_version=0, created_by=user.id)
        db.add(item)
        db.commit()
        item_id, user_id = item.id, user.id

    writers = 8
    barrier = threading.Barrier(writers)
    outcomes: list[str] = []
    lock = threading.Lock()

    def writer() -> None:
        with pg_sessions() as session:
            barrier.wait()
            try:
                apply_stock_delta(
                    session,
                    item_id=item_id,
                    expected_version=0,
                    delta=5,
                    movement_type="INBOUND",
                    reason="race",
                    actor_id=user_id,
                )
                outcome = "won"
            except VersionConflict:
                outcome = "conflict"
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=writer) for _ in range(writers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert outcomes.count("won") == 1
    assert outcomes.count("conflict") == writers - 1
    with pg_sessions() as db:
        fresh = db.get(InventoryItem, item_id)
        assert (fresh.quantity_on_hand, fresh.item_version) == (5, 1)
        assert ledger_sum(db, item_id) == 5
