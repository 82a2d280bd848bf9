"""Application tests for cart event → user notification translation."""

from ordering.cart.notifications import CartNotifications
from ordering.cart.store import CartStore
from ordering.notifier.logging_adapter import LoggingNotifier
from ordering.notifier.port import NotificationLevel


def _add(store, quantity=1, name="Runner"):
    store.add_or_increment(1, "RUN-001", name, 42, quantity, 100.0)


def _store(persistence, notifier, owner=None):
    return CartStore(persistence, owner=owner, on_events=CartNotifications(notifier))


class TestCartNotifications:
    def test_added(self, persistence, notifier):
        store = _store(persistence, notifier)
        _add(store)
        assert notifier.messages == [{"level": "success", "message": "Added Runner to cart"}]

    def test_increment(self, persistence, notifier):
        store = _store(persistence, notifier)
        _add(store)
        _add(store)
        assert notifier.messages[-1] == {"level": "success", "message": "Updated Runner quantity in cart"}

    def test_removed(self, persistence, notifier):
        store = _store(persistence, notifier)
        _add(store)
        store.remove_line(1, 42)
        assert notifier.messages[-1] == {"level": "info", "message": "Removed Runner from cart"}

    def test_quantity_edit_is_silent(self, persistence, notifier):
        store = _store(persistence, notifier)
        _add(store)
        notifier.reset()
        store.set_quantity(1, 42, 4)
        assert notifier.messages == []

    def test_user_clear(self, persistence, notifier):
        store = _store(persistence, notifier)
        _add(store)
        store.clear()
        assert notifier.messages[-1] == {"level": "info", "message": "Cart cleared"}

    def test_clearing_an_empty_cart_is_silent(self, persistence, notifier):
        store = _store(persistence, notifier)
        store.clear()
        assert notifier.messages == []

    def test_clear_after_order_is_silent(self, persistence, notifier):
        store = _store(persistence, notifier)
        _add(store)
        notifier.reset()
        store.clear(reason="order_submitted")
        assert notifier.messages == []

    def test_no_op_is_silent(self, persistence, notifier):
        store = _store(persistence, notifier)
        store.remove_line(1, 42)
        assert notifier.messages == []


class TestNotifiers:
    def test_recording_notifier_drain(self, notifier):
        notifier.notify(NotificationLevel.INFO, "Hello")
        assert notifier.drain() == [{"level": "info", "message": "Hello"}]
        assert notifier.messages == []

    def test_logging_notifier_accepts_every_level(self):
        logging_notifier = LoggingNotifier()
        for level in NotificationLevel:
            logging_notifier.notify(level, "message")
