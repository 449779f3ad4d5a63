"""Pytest configuration - loads .env for live tests and builds mocked clients."""

from collections.abc import Callable
from pathlib import Path

import httpx
import pytest
from dotenv import load_dotenv

from qstash_client import Client

# Load .env from project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

TOKEN = "test-token"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def make_client():
    """Return a factory building a Client whose traffic goes to `handler`."""
    def factory(handler: Handler, **kwargs) -> Client:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return Client(TOKEN, http_client=http, **kwargs)

    return factory
