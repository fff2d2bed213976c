import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import pytest
from fastapi.testclient import TestClient

from baxela.config import Settings
from baxela.database import InMemoryDatabase
from baxela.dependencies import build_services
from baxela.errors import ProviderError
from baxela.ipfs import PinningClient
from baxela.main import create_app
from baxela.payments import SimulatedPaymentGateway

ADMIN = "0x1234567890123456789012345678901234567890"
OTHER_ADMIN = "0x2345678901234567890123456789012345678901"
STRANGER = "0x9999999999999999999999999999999999999999"

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class SlowClock(FrozenClock):
    """Sleeps on every read, widening any gap between a check and the write that follows it."""

    def __call__(self) -> datetime:
        time.sleep(0.05)
        return self.now


class FakePinningClient(PinningClient):
    """Keeps pins in memory. Unknown content ids fail the way a gateway 404 does."""

    def __init__(self, fail_uploads: bool = False) -> None:
        super().__init__("test-key", "test-secret")
        self.fail_uploads = fail_uploads
        self.pins: Dict[str, Any] = {}
        self.files: Dict[str, bytes] = {}
        self._counter = 0

    def _next_content_id(self) -> str:
        self._counter += 1
        return f"bafkreitest{self._counter:040d}"

    async def pin_json(self, payload: Any, name: Optional[str] = None, keyvalues=None) -> str:
        if self.fail_uploads:
            raise ProviderError("Pinata upload failed: 500 - boom", upstream_status=500)
        content_id = self._next_content_id()
        self.pins[content_id] = payload
        return content_id

    async def pin_file(self, filename: str, content: bytes, content_type: str = "application/octet-stream") -> str:
        if self.fail_uploads:
            raise ProviderError("File upload failed: 500 - boom", upstream_status=500)
        content_id = self._next_content_id()
        self.files[content_id] = content
        return content_id

    async def fetch_json(self, content_id: str) -> Any:
        if content_id not in self.pins:
            raise ProviderError("IPFS fetch failed: 404 - not found", upstream_status=404)
        return self.pins[content_id]

    async def test_connectivity(self) -> bool:
        return True


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, seed_data=True, payment_delay_seconds=0)


@pytest.fixture
def pinning() -> FakePinningClient:
    return FakePinningClient()


@pytest.fixture
def services(settings, pinning, clock):
    return build_services(
        settings,
        db=InMemoryDatabase(),
        pinning=pinning,
        payments=SimulatedPaymentGateway(delay_seconds=0),
        clock=clock,
    )


@pytest.fixture
def app(settings, services):
    return create_app(settings, services)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
