"""Auth-state signal: the one bit of auth the cart core listens to."""

from collections.abc import Callable

import structlog

logger = structlog.get_logger(__name__)


class AuthSignal:
    """Observable "is authenticated" flag.

    Subscribers hear about real transitions only; setting the flag to its
    current value is silent. Login and logout themselves happen elsewhere.
    """

    def __init__(self, authenticated: bool = False) -> None:
        self._authenticated = authenticated
        self._listeners: list[Callable[[bool], None]] = []

    @property
    def is_authenticated(self) -> bool:
        return self._authenticated

    def set(self, authenticated: bool) -> None:
        if authenticated == self._authenticated:
            return
        self._authenticated = authenticated
        logger.debug("Auth state changed", authenticated=authenticated)
        for listener in list(self._listeners):
            listener(authenticated)

    def subscribe(self, listener: Callable[[bool], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
