import sys

import httpx
import pytest
import pytest_asyncio

# Ensure project root is importable (so `import services...` works reliably across environments)
import os as _os
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from proxyctl import db  # noqa: E402
from proxyctl.gateway import GatewayClient  # noqa: E402
from proxyctl.settings import Settings  # noqa: E402
from services.gateway import app as gateway_app  # noqa: E402

API = "http://gateway.test/api"


@pytest.fixture(autouse=True)
def event_journal(tmp_path, monkeypatch):
    """Keep the event journal out of the working directory."""
    monkeypatch.setattr(db, "settings", Settings(db_path=str(tmp_path / "events.db"), enable_events=True))
    return tmp_path / "events.db"


@pytest.fixture()
def gateway_state():
    gateway_app.reset()
    yield gateway_app.APP_STATE
    gateway_app.reset()


@pytest.fixture()
def asgi_transport(gateway_state):
    return httpx.ASGITransport(app=gateway_app.app)


@pytest_asyncio.fixture()
async def gateway(asgi_transport):
    client = GatewayClient(API, transport=asgi_transport)
    yield client
    await client.aclose()
