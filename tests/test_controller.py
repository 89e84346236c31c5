"""Tests for the reconciliation controller."""
import asyncio

import httpx
import orjson
import pytest

from price_monitor.errors import (
    ApproveFailed,
    DeleteSyncFailed,
    EnrollFailed,
    FetchFailed,
    StateWriteFailed,
    UnknownProduct,
)
from price_monitor.parse.models import Decision, Status


def persisted(slot) -> dict:
    return {item["id"]: item for item in orjson.loads(slot.read("products"))}


@pytest.mark.asyncio
async def test_add_inserts_provisional_record(controller, platform, slot):
    """Test that a successful enroll adds a provisional record first."""
    record = await controller.add("Widget", 1000, 900)

    assert controller.store.ids()[0] == record.id
    assert record.status == Status.PENDING
    assert record.decision == Decision.HOLD
    assert record.competitor_price == 0
    assert record.id in persisted(slot)
    assert controller.notifications.latest().level == "success"


@pytest.mark.asyncio
async def test_add_enroll_fails_leaves_store_unchanged(controller, platform, slot):
    """Test add then enroll returning HTTP 500."""
    controller.store.persist()
    before = controller.store.snapshot()
    slot_before = slot.read("products")
    platform.fail("/enroll", 500)

    with pytest.raises(EnrollFailed) as exc_info:
        await controller.add("X", 1000, 900)

    assert exc_info.value.status_code == 500
    assert controller.store.snapshot() == before
    assert slot.read("products") == slot_before
    assert "HTTP 500" in controller.notifications.latest().message


@pytest.mark.asyncio
async def test_add_rejects_bad_input(controller, platform):
    """Test input validation happens before any remote call."""
    with pytest.raises(ValueError):
        await controller.add("   ", 10, 5)
    with pytest.raises(ValueError):
        await controller.add("Widget", -1, 5)
    assert platform.requests == []


@pytest.mark.asyncio
async def test_approve_success(controller, platform, slot):
    """Test that a confirmed approve stays APPROVED in memory and slot."""
    record = await controller.approve("a")

    assert record.status == Status.APPROVED
    assert controller.store.get("a").status == Status.APPROVED
    assert persisted(slot)["a"]["status"] == "APPROVED"
    assert platform.calls("/approve")[0].url.params["new_price"] == "129000"


@pytest.mark.asyncio
async def test_approve_sends_my_price_for_hold(controller, platform):
    """Test HOLD approval sends the unchanged price."""
    await controller.approve("b")
    assert platform.calls("/approve")[0].url.params["new_price"] == "169900"


@pytest.mark.asyncio
async def test_approve_failure_rolls_back(controller, platform, slot):
    """Test that a failed approve restores the prior status everywhere."""
    platform.fail("/approve", 502)

    with pytest.raises(ApproveFailed) as exc_info:
        await controller.approve("a")

    assert exc_info.value.status_code == 502
    assert controller.store.get("a").status == Status.PENDING
    assert persisted(slot)["a"]["status"] == "PENDING"
    assert controller.notifications.latest().level == "error"


@pytest.mark.asyncio
async def test_approve_is_optimistic(controller, platform, slot):
    """Test that APPROVED is visible and persisted while the call is in flight."""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["memory"] = controller.store.get("a").status
        seen["slot"] = persisted(slot)["a"]["status"]
        return httpx.Response(500)

    controller.gateway.client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    with pytest.raises(ApproveFailed):
        await controller.approve("a")

    assert seen == {"memory": Status.APPROVED, "slot": "APPROVED"}
    assert controller.store.get("a").status == Status.PENDING


@pytest.mark.asyncio
async def test_approve_rollback_of_already_approved(controller, platform):
    """Test that re-approving an approved record reissues the call and reverts to APPROVED."""
    platform.fail("/approve", 500)

    with pytest.raises(ApproveFailed):
        await controller.approve("c")

    assert len(platform.calls("/approve")) == 1
    assert controller.store.get("c").status == Status.APPROVED


@pytest.mark.asyncio
async def test_concurrent_approves_are_independent(controller, platform):
    """Test overlapping approves on different ids."""
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params["product_id"] == "a":
            return httpx.Response(500)
        return httpx.Response(200)

    controller.gateway.client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    results = await asyncio.gather(
        controller.approve("a"), controller.approve("b"), return_exceptions=True
    )

    assert isinstance(results[0], ApproveFailed)
    assert controller.store.get("a").status == Status.PENDING
    assert controller.store.get("b").status == Status.APPROVED


@pytest.mark.asyncio
async def test_approve_unknown_id(controller, platform):
    """Test approving an id that isn't in the store."""
    with pytest.raises(UnknownProduct):
        await controller.approve("missing")
    assert platform.requests == []


@pytest.mark.asyncio
async def test_delete_selected_success(controller, platform, slot):
    """Test deleting the current selection."""
    controller.selection.toggle("a")
    controller.selection.toggle("b")

    deleted = await controller.delete_selected()

    assert deleted == 2
    assert controller.store.ids() == ["c"]
    assert list(persisted(slot)) == ["c"]
    assert controller.selection.size() == 0
    assert orjson.loads(platform.calls("/delete")[0].content) == {"ids": ["a", "b"]}


@pytest.mark.asyncio
@pytest.mark.parametrize("broken", ["status", "network"])
async def test_delete_stands_when_sync_fails(controller, platform, slot, broken):
    """Test that local deletion is irreversible regardless of remote outcome."""
    if broken == "status":
        platform.fail("/delete", 500)
    else:
        platform.disconnect("/delete")
    controller.selection.select_all(["a", "c"])

    with pytest.raises(DeleteSyncFailed) as exc_info:
        await controller.delete_selected()

    assert exc_info.value.soft is True
    assert controller.store.ids() == ["b"]
    assert list(persisted(slot)) == ["b"]
    assert controller.selection.size() == 0
    assert controller.notifications.latest().level == "warning"


@pytest.mark.asyncio
async def test_delete_explicit_ids_evicts_selection(controller, platform):
    """Test that deleting explicit ids clears the whole selection."""
    controller.selection.select_all(["a", "b"])

    await controller.delete_selected(["a"])

    assert "a" not in controller.store
    assert controller.selection.size() == 0


@pytest.mark.asyncio
async def test_delete_empty_selection_skips_remote(controller, platform):
    """Test that nothing is sent when nothing is selected."""
    assert await controller.delete_selected() == 0
    assert platform.calls("/delete") == []


@pytest.mark.asyncio
async def test_refresh_replaces_wholesale(controller, platform, slot):
    """Test that refresh leaves exactly the fetched records."""
    platform.responses["/fetch"] = httpx.Response(200, json=[
        {"id": "b", "product_name": "Back again", "my_price": 5, "min_price": 4, "status": ["approved"]},
        {"id": "z", "product_name": "New", "my_price": 7, "min_price": 6},
        {"id": "bad"},
    ])
    controller.selection.select_all(["a", "b"])

    records = await controller.refresh()

    assert [r.id for r in records] == ["b", "z"]
    assert controller.store.ids() == ["b", "z"]
    assert controller.store.get("b").name == "Back again"
    assert list(persisted(slot)) == ["b", "z"]
    assert controller.selection.selected() == frozenset({"b"})


@pytest.mark.asyncio
async def test_refresh_failure_leaves_store(controller, platform):
    """Test that a failed refresh keeps the current collection."""
    before = controller.store.snapshot()
    platform.fail("/fetch", 500)

    with pytest.raises(FetchFailed):
        await controller.refresh()

    assert controller.store.snapshot() == before


def corrupt_gzip_body(request: httpx.Request) -> httpx.Response:
    return httpx.Response(502, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all")


def redirect_loop(request: httpx.Request) -> httpx.Response:
    raise httpx.TooManyRedirects("Exceeded maximum allowed redirects.", request=request)


@pytest.mark.asyncio
@pytest.mark.parametrize("handler", [corrupt_gzip_body, redirect_loop])
async def test_approve_rolls_back_on_any_request_error(controller, slot, handler):
    """Test that undecodable responses and redirect loops also revert the approve."""
    controller.gateway.client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    with pytest.raises(ApproveFailed) as exc_info:
        await controller.approve("a")

    assert exc_info.value.status_code is None
    assert controller.store.get("a").status == Status.PENDING
    assert persisted(slot)["a"]["status"] == "PENDING"


@pytest.mark.asyncio
async def test_approve_write_failure_skips_remote_call(controller, platform, slot, monkeypatch):
    """Test that a locked state database leaves memory and slot at PENDING."""
    controller.store.persist()

    def locked(key, value):
        raise StateWriteFailed("database is locked")

    monkeypatch.setattr(slot, "write", locked)

    with pytest.raises(StateWriteFailed):
        await controller.approve("a")

    assert controller.store.get("a").status == Status.PENDING
    assert persisted(slot)["a"]["status"] == "PENDING"
    assert platform.calls("/approve") == []


@pytest.mark.asyncio
async def test_delete_sync_failure_counts_removed_records(controller, platform):
    """Test that the soft failure reports only records that were really removed."""
    platform.fail("/delete", 500)

    with pytest.raises(DeleteSyncFailed) as exc_info:
        await controller.delete_selected(["a", "ghost"])

    assert exc_info.value.removed == 1
    assert exc_info.value.ids == ["a", "ghost"]


@pytest.mark.asyncio
@pytest.mark.parametrize("my_price,floor_price", [
    (float("nan"), 1),
    (1000, float("nan")),
    (float("inf"), 1),
])
async def test_add_rejects_non_finite_prices(controller, platform, my_price, floor_price):
    """Test that NaN and infinite prices never reach the platform."""
    with pytest.raises(ValueError):
        await controller.add("X", my_price, floor_price)
    assert platform.requests == []
