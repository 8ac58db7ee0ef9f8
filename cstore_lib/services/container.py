import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class ServiceContainer:
    """A tiny, explicit DI container owning the app's long-lived services.

    Register by key and resolve via `get`. Factories are evaluated once and
    cached as singletons. Services registered with `owned=True` are closed
    by `close_all` in reverse registration order at shutdown.
    """

    def __init__(self) -> None:
        self._singletons: Dict[str, Any] = {}
        self._factories: Dict[str, Callable[[], Any]] = {}
        self._owned: List[str] = []

    def register_singleton(self, key: str, instance: Any, owned: bool = False) -> None:
        self._singletons[key] = instance
        if owned and key not in self._owned:
            self._owned.append(key)

    def register_factory(self, key: str, factory: Callable[[], Any]) -> None:
        self._factories[key] = factory

    def get(self, key: str) -> Any:
        if key in self._singletons:
            return self._singletons[key]
        if key in self._factories:
            inst = self._factories[key]()
            self._singletons[key] = inst
            return inst
        raise KeyError(f"No service registered for key '{key}'")

    def close_all(self) -> None:
        for key in reversed(self._owned):
            inst = self._singletons.get(key)
            close = getattr(inst, "close", None)
            if callable(close):
                logger.debug("Closing service %s", key)
                close()
