"""Identity provider port: who owns the cart right now.

Identity issuance (sign-in, tokens) lives outside this service. The cart
only needs the current user id (None for a guest), an optional customer
profile for the order, and a notification when the identity changes.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class IdentityChange:
    """Transition of the current identity; ``None`` means guest."""

    previous: int | str | None
    current: int | str | None

    @property
    def is_login(self) -> bool:
        return self.previous is None and self.current is not None

    @property
    def is_logout(self) -> bool:
        return self.previous is not None and self.current is None


IdentityListener = Callable[[IdentityChange], None]


class IdentityProvider(ABC):
    """Abstract interface for identity providers."""

    @property
    @abstractmethod
    def current_user_id(self) -> int | str | None:
        """The authenticated user id, or None for a guest."""
        ...

    @abstractmethod
    def profile(self) -> dict | None:
        """Customer details sent along with orders (email, company, VAT number...)."""
        ...

    @abstractmethod
    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Register a listener for identity changes. Returns an unsubscribe callable."""
        ...
