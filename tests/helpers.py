from typing import Any
from starlette.testclient import TestClient


def register_service_on_client(client: TestClient, name: str, instance: Any) -> None:
    """Swap a service in the app's DI container for the rest of a test.

    Usage in tests:
        from tests.helpers import register_service_on_client
        register_service_on_client(client, 'storage', failing_storage)
    """
    client.app.state.container.register_singleton(name, instance)
