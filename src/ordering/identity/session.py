"""In-process identity for one storefront session.

Sign-in happens elsewhere; the session is told about it through
``login``/``logout`` and fans the transition out to its listeners.
Listeners run synchronously in registration order.
"""

import structlog

from ordering.identity.port import IdentityChange, IdentityListener, IdentityProvider

logger = structlog.get_logger(__name__)


class SessionIdentity(IdentityProvider):
    def __init__(self, user_id=None, profile: dict | None = None):
        self._user_id = user_id
        self._profile = profile
        self._listeners: list[IdentityListener] = []

    @property
    def current_user_id(self):
        return self._user_id

    def profile(self) -> dict | None:
        return dict(self._profile) if self._profile else None

    def subscribe(self, listener: IdentityListener):
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def login(self, user_id, profile: dict | None = None) -> None:
        previous = self._user_id
        self._user_id = user_id
        self._profile = profile
        logger.info("Identity signed in", previous=previous, current=user_id)
        self._emit(IdentityChange(previous=previous, current=user_id))

    def logout(self) -> None:
        previous = self._user_id
        self._user_id = None
        self._profile = None
        logger.info("Identity signed out", previous=previous)
        self._emit(IdentityChange(previous=previous, current=None))

    def _emit(self, change: IdentityChange) -> None:
        for listener in list(self._listeners):
            listener(change)
