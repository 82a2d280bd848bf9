import pytest
from ordering.cart.store import CartStore
from ordering.notifier.recording import RecordingNotifier
from ordering.persistence.cart_persistence import CartPersistence
from ordering.persistence.memory_adapter import MemoryStorageArea
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture()
def storage_area():
    return MemoryStorageArea()


@pytest.fixture()
def persistence(storage_area):
    return CartPersistence(storage_area.open_context())


@pytest.fixture()
def events():
    return []


@pytest.fixture()
def guest_store(persistence, events):
    return CartStore(persistence, owner=None, on_events=events.extend, tax_rate=0.08)


@pytest.fixture()
def notifier():
    return RecordingNotifier()
