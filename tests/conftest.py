"""Shared fixtures: a scripted workflow platform behind httpx.MockTransport."""
import httpx
import pytest

from price_monitor.fetch.client import SyncGateway
from price_monitor.jobs.controller import ReconciliationController
from price_monitor.parse.models import Decision, ProductRecord, Status
from price_monitor.store.products import ProductStore
from price_monitor.store.slot import DurableSlot

BASE = "http://platform.test"


class FakePlatform:
    """Answers the four workflow endpoints and records every request.

    Set `responses[path]` to an httpx.Response, or to an exception instance
    to simulate a transport failure.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responses: dict = {
            "/enroll": httpx.Response(200),
            "/fetch": httpx.Response(200, json=[]),
            "/approve": httpx.Response(200),
            "/delete": httpx.Response(200),
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses[request.url.path]
        if isinstance(response, Exception):
            raise response
        # Fresh response per request so a scripted answer can be served repeatedly
        return httpx.Response(response.status_code, headers=response.headers, content=response.content)

    def fail(self, path: str, status_code: int = 500, **kwargs) -> None:
        self.responses[path] = httpx.Response(status_code, **kwargs)

    def disconnect(self, path: str) -> None:
        self.responses[path] = httpx.ConnectError("connection refused")

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]


@pytest.fixture
def platform():
    return FakePlatform()


@pytest.fixture
def gateway(platform):
    client = httpx.AsyncClient(transport=httpx.MockTransport(platform.handler))
    return SyncGateway(
        client=client,
        enroll_url=f"{BASE}/enroll",
        fetch_url=f"{BASE}/fetch",
        approve_url=f"{BASE}/approve",
        delete_url=f"{BASE}/delete",
    )


@pytest.fixture
def slot(tmp_path):
    return DurableSlot(tmp_path / "state.db")


def make_record(id: str, **overrides) -> ProductRecord:
    fields = {
        "id": id,
        "name": f"Product {id}",
        "my_price": 1000,
        "floor_price": 900,
        "competitor_price": 950,
        "competitor_name": "Amazon",
        "decision": Decision.HOLD,
        "reasoning": "",
        "status": Status.PENDING,
    }
    fields.update(overrides)
    return ProductRecord(**fields)


@pytest.fixture
def products():
    return [
        make_record("a", decision=Decision.MATCH_PRICE, my_price=134900, competitor_price=129000),
        make_record("b", decision=Decision.HOLD, my_price=169900, competitor_price=175000),
        make_record("c", decision=Decision.BUNDLE_OFFER, status=Status.APPROVED),
    ]


@pytest.fixture
def store(slot, products):
    store = ProductStore(slot)
    store.load(products)
    return store


@pytest.fixture
def controller(store, gateway):
    return ReconciliationController(store, gateway)
