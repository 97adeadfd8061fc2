from fastapi import FastAPI, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import List, Dict, Any, Optional
import httpx
import logging
from purchase_tracker.config import settings
from purchase_tracker.database import get_db
from purchase_tracker import services
from purchase_tracker.logging_config import setup_logging
from purchase_tracker.normalizer import normalize_payload, parse_payload
from purchase_tracker.reconciler import ShipmentReconciler
from purchase_tracker.schemas import NotifyRequest, TrackRequest, StatusOverrideRequest
from purchase_tracker.ship24_client import Ship24Client, Ship24APIError, Ship24Error, get_ship24_client
from purchase_tracker.signature import extract_signature, verify_signature
from purchase_tracker.telegram import TelegramNotifier, format_shipment_update, get_notifier

setup_logging(
    log_level=settings.log_level,
    log_file=settings.log_file,
    quiet_loggers=settings.log_quiet_loggers,
    console_format=settings.log_format
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Purchase Tracker")

WEBHOOK_PATH = "/api/webhooks/ship24"

logger.info("🚀 Purchase Tracker started")


def require_db(db: Optional[Session]) -> Session:
    if db is None:
        raise HTTPException(status_code=503, detail="Database is not configured")
    return db


@app.post(WEBHOOK_PATH)
async def ship24_webhook(
    request: Request,
    db: Optional[Session] = Depends(get_db),
    notifier: TelegramNotifier = Depends(get_notifier)
):
    try:
        raw = await request.body()

        signature = extract_signature(request.headers)
        if not verify_signature(raw, signature, settings.ship24_webhook_secret):
            return JSONResponse({"ok": False, "error": "invalid signature"}, status_code=401)

        payload = parse_payload(raw)
        normalized = normalize_payload(payload)

        logger.info(
            f"🚚 Ship24 webhook: tracking_number={normalized.tracking_number}, "
            f"status={normalized.raw_status!r} -> {normalized.status}, "
            f"carrier={normalized.carrier}, checkpoints={len(normalized.checkpoints)}"
        )

        result = await ShipmentReconciler(db, notifier).apply(normalized)
        logger.info(f"Webhook processed: outcome={result.outcome}, shipment_id={result.shipment_id}")

        return {"ok": True}
    except Exception:
        logger.exception("❌ Ship24 webhook error")
        return JSONResponse({"ok": False}, status_code=500)


@app.get(WEBHOOK_PATH)
async def ship24_webhook_alive():
    if settings.ship24_webhook_secret:
        message = "Ship24 webhook alive"
    else:
        message = "Ship24 webhook alive (TEST MODE: no signature required)"
    return {"ok": True, "message": message}


@app.head(WEBHOOK_PATH)
async def ship24_webhook_head():
    return Response(status_code=200)


@app.options(WEBHOOK_PATH)
async def ship24_webhook_options():
    return Response(
        status_code=204,
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": "POST, GET, OPTIONS, HEAD",
            "Access-Control-Allow-Headers": "*",
        }
    )


@app.post("/api/notify")
async def notify(body: NotifyRequest, notifier: TelegramNotifier = Depends(get_notifier)):
    if not body.message or not body.message.strip():
        return JSONResponse({"error": "Message is required."}, status_code=400)

    try:
        await notifier.send_message(body.message)
    except Exception:
        logger.exception("❌ Error in /api/notify")
        return JSONResponse({"error": "An internal server error occurred."}, status_code=500)

    return {"success": True, "message": "Notification sent."}


@app.post("/api/track")
async def track(body: TrackRequest, client: Ship24Client = Depends(get_ship24_client)):
    if not body.tracking_number or not body.courier:
        return JSONResponse({"error": "Tracking number and courier are required."}, status_code=400)

    try:
        return await client.create_tracker(body.tracking_number, body.courier)
    except Ship24APIError as e:
        return JSONResponse(
            {"error": "Failed to create tracker with Ship24.", "details": e.details},
            status_code=e.status_code
        )
    except (Ship24Error, httpx.HTTPError) as e:
        logger.error(f"❌ Error in /api/track: {e}")
        return JSONResponse({"error": "An internal server error occurred."}, status_code=500)


@app.get("/api/stats")
async def stats(db: Optional[Session] = Depends(get_db)) -> Dict[str, int]:
    return services.get_dashboard_statistics(require_db(db))


@app.get("/api/shipments")
async def api_shipments(db: Optional[Session] = Depends(get_db)) -> List[Dict[str, Any]]:
    return services.get_shipments_with_details(require_db(db))


@app.get("/api/shipments/{shipment_id}/checkpoints")
async def api_shipment_checkpoints(
    shipment_id: int,
    db: Optional[Session] = Depends(get_db)
) -> List[Dict[str, Any]]:
    db = require_db(db)
    if services.get_shipment(db, shipment_id) is None:
        raise HTTPException(status_code=404, detail="Shipment not found")
    return [services.serialize_checkpoint(c) for c in services.get_checkpoints(db, shipment_id)]


@app.patch("/api/shipments/{shipment_id}/status")
async def override_shipment_status(
    shipment_id: int,
    body: StatusOverrideRequest,
    db: Optional[Session] = Depends(get_db),
    notifier: TelegramNotifier = Depends(get_notifier)
) -> Dict[str, Any]:
    db = require_db(db)
    shipment = services.get_shipment(db, shipment_id)
    if shipment is None:
        raise HTTPException(status_code=404, detail="Shipment not found")

    shipment = services.set_shipment_status(db, shipment, body.status)
    logger.info(f"✏️ Shipment {shipment.id} status set manually to {shipment.status}")

    purchase = shipment.purchase
    await notifier.send_message(format_shipment_update(
        store_name=purchase.store_name if purchase else None,
        order_id=purchase.order_id if purchase else None,
        tracking_number=shipment.tracking_number,
        status=shipment.status
    ))

    return {"id": shipment.id, "status": shipment.status}


@app.get("/health")
async def health_check():
    return {"status": "ok"}
