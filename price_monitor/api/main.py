"""FastAPI application exposing operator actions."""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.security import APIKeyHeader
from pydantic import BaseModel, Field

from price_monitor.config import Config, config
from price_monitor.display import product_view, summary
from price_monitor.errors import ApproveFailed, DeleteSyncFailed, EnrollFailed, FetchFailed, UnknownProduct
from price_monitor.jobs.controller import ReconciliationController, create_controller

logger = logging.getLogger(__name__)

app = FastAPI(title="Price Monitor API", version="0.1.0")

# API Key security (if configured)
API_KEY_HEADER = APIKeyHeader(name="X-API-KEY", auto_error=False)

_controller: Optional[ReconciliationController] = None


def verify_api_key(api_key: str = Depends(API_KEY_HEADER)) -> bool:
    """Verify API key if configured."""
    if config.API_KEY:
        if not api_key or api_key != config.API_KEY:
            raise HTTPException(status_code=403, detail="Invalid API key")
    return True


def get_controller() -> ReconciliationController:
    """Single controller per process, created on first use."""
    global _controller
    if _controller is None:
        _controller = create_controller()
    return _controller


@app.on_event("shutdown")
async def shutdown():
    if _controller is not None:
        await _controller.gateway.aclose()


class AddProductRequest(BaseModel):
    """Request model for enrolling a product."""
    product_name: str = Field(..., min_length=1)
    my_price: float = Field(..., ge=0)
    min_price: float = Field(..., ge=0)


class DeleteRequest(BaseModel):
    """Explicit ids to delete; the current selection is used when omitted."""
    ids: Optional[list[str]] = None


class SelectAllRequest(BaseModel):
    selected: bool = True


def _listing(controller: ReconciliationController) -> dict:
    records = controller.store.records()
    selection = controller.selection
    return {
        "products": [product_view(r, selection.is_selected(r.id)) for r in records],
        "summary": summary(records),
        "selected_count": selection.size(),
        "all_selected": selection.all_selected(r.id for r in records),
    }


@app.get("/health")
async def health():
    """Health check endpoint (no auth required)."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/products")
async def list_products(
    controller: ReconciliationController = Depends(get_controller),
    _: bool = Depends(verify_api_key),
):
    return _listing(controller)


@app.post("/products", status_code=201)
async def add_product(
    request: AddProductRequest,
    controller: ReconciliationController = Depends(get_controller),
    _: bool = Depends(verify_api_key),
):
    try:
        record = await controller.add(request.product_name, request.my_price, request.min_price)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except EnrollFailed as e:
        raise HTTPException(status_code=502, detail=controller.notifications.latest().message) from e
    return product_view(record)


@app.post("/products/refresh")
async def refresh_products(
    controller: ReconciliationController = Depends(get_controller),
    _: bool = Depends(verify_api_key),
):
    try:
        await controller.refresh()
    except FetchFailed as e:
        raise HTTPException(status_code=502, detail=controller.notifications.latest().message) from e
    return _listing(controller)


@app.post("/products/delete-selected")
async def delete_selected(
    request: DeleteRequest = DeleteRequest(),
    controller: ReconciliationController = Depends(get_controller),
    _: bool = Depends(verify_api_key),
):
    try:
        deleted = await controller.delete_selected(request.ids)
        synced = True
    except DeleteSyncFailed as e:
        deleted = e.removed
        synced = False
    latest = controller.notifications.latest()
    return {
        "deleted": deleted,
        "synced": synced,
        "message": latest.message if latest else None,
    }


@app.post("/products/{product_id}/approve")
async def approve_product(
    product_id: str,
    controller: ReconciliationController = Depends(get_controller),
    _: bool = Depends(verify_api_key),
):
    try:
        record = await controller.approve(product_id)
    except UnknownProduct as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ApproveFailed as e:
        raise HTTPException(status_code=502, detail=controller.notifications.latest().message) from e
    return product_view(record)


@app.post("/selection/toggle/{product_id}")
async def toggle_selection(
    product_id: str,
    controller: ReconciliationController = Depends(get_controller),
    _: bool = Depends(verify_api_key),
):
    if product_id not in controller.store:
        raise HTTPException(status_code=404, detail=f"Unknown product: {product_id}")
    selected = controller.selection.toggle(product_id)
    return {"product_id": product_id, "selected": selected, "selected_count": controller.selection.size()}


@app.post("/selection/all")
async def select_all(
    request: SelectAllRequest = SelectAllRequest(),
    controller: ReconciliationController = Depends(get_controller),
    _: bool = Depends(verify_api_key),
):
    """Header checkbox: select every product, or clear the selection."""
    if request.selected:
        controller.selection.select_all(controller.store.ids())
    else:
        controller.selection.select_none()
    return {"selected_count": controller.selection.size()}


@app.post("/selection/none")
async def select_none(
    controller: ReconciliationController = Depends(get_controller),
    _: bool = Depends(verify_api_key),
):
    controller.selection.select_none()
    return {"selected_count": 0}


@app.get("/notifications")
async def list_notifications(
    controller: ReconciliationController = Depends(get_controller),
    _: bool = Depends(verify_api_key),
):
    return {"notifications": [n.to_dict() for n in controller.notifications.items()]}


if __name__ == "__main__":
    import uvicorn
    Config.validate()
    uvicorn.run(app, host="0.0.0.0", port=8000)
