import time
from typing import Dict, Any, Optional, Type, TypeVar
from fastapi import FastAPI, APIRouter, Request, Depends
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, ValidationError

# Import our modules
from config import load_settings
from services import Services, build_services
from models import (
    CalBookingWebhook,
    PipedriveLeadWebhook,
    RetellCallAnalyzed,
    RetellCallEvent,
    WebhookResponse,
)
from processors.lead_created import process_lead_created
from processors.call_analyzed import process_call_analyzed
from processors.call_lifecycle import process_call_event
from processors.appointment import process_appointment
from processors import samples

VERSION = "2.0.0"

# Load configuration (.env included)
settings = load_settings()

# Configure logging
logger.add(settings.log_file, rotation="1 day", retention="7 days", level=settings.log_level)

# Initialize FastAPI app
app = FastAPI(
    title="PipCal Webhook Relay",
    description="Relays Pipedrive, Retell AI and Cal.com webhooks into Pipedrive activities",
    version=VERSION
)
app.state.services = build_services(settings)

router = APIRouter()

M = TypeVar("M", bound=BaseModel)


def get_services(request: Request) -> Services:
    return request.app.state.services


def respond(status_code: int, success: bool, message: str, data: Optional[Dict[str, Any]] = None) -> JSONResponse:
    body = WebhookResponse(success=success, message=message, data=data)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def parse_body(req: Request, model: Type[M]) -> Optional[M]:
    """Decode the JSON body into `model`; None when it is not valid JSON of that shape."""
    try:
        raw = await req.json()
        return model.model_validate(raw)
    except (ValueError, ValidationError) as e:
        logger.warning(f"Invalid JSON payload for {model.__name__}: {e}")
        return None


@router.post("/webhook/pipedrive/lead")
async def pipedrive_lead_webhook(req: Request, services: Services = Depends(get_services)):
    """
    Pipedrive lead webhook: dial the lead's person with the Retell agent.

    Expected payload:
    {
        "data": {"id": "f3b0...", "person_id": 139, "title": "ACME lead"},
        "meta": {"action": "create", "entity": "lead"}
    }
    """
    payload = await parse_body(req, PipedriveLeadWebhook)
    if payload is None:
        return respond(400, False, "Invalid JSON payload")

    if not payload.data.id or not payload.data.person_id:
        return respond(400, False, "Missing required fields: data.id and data.person_id")

    try:
        outcome = await process_lead_created(payload, services)
    except Exception as e:
        logger.error(f"Lead processing failed: {e}")
        return respond(500, False, f"Failed to process lead: {e}")

    return respond(200, True, "Pipedrive lead webhook processed successfully", {
        "lead_id": payload.data.id,
        "person_id": payload.data.person_id,
        "title": payload.data.title,
        "action": payload.meta.action,
        **outcome,
    })


@router.post("/webhook/retell")
async def retell_webhook(req: Request, services: Services = Depends(get_services)):
    """Retell call lifecycle events (call_started, call_ended, call.completed, call.hangup, call.optout)."""
    payload = await parse_body(req, RetellCallEvent)
    if payload is None:
        return respond(400, False, "Invalid JSON payload")

    if not payload.call_id or not payload.contact_phone:
        return respond(400, False, "Missing required fields: call_id and contact_phone")

    try:
        outcome = await process_call_event(payload, services)
    except Exception as e:
        logger.error(f"Retell call processing failed: {e}")
        return respond(500, False, f"Failed to process call: {e}")

    return respond(200, True, "Retell webhook processed successfully", {
        "call_id": payload.call_id,
        "contact_phone": payload.contact_phone,
        "event": payload.event,
        "status": payload.status,
        "duration": payload.duration,
        **outcome,
    })


@router.post("/webhook/retell/analyzed")
async def retell_call_analyzed_webhook(req: Request, services: Services = Depends(get_services)):
    """Retell call_analyzed callback: reconcile the call onto the person that was dialed."""
    payload = await parse_body(req, RetellCallAnalyzed)
    if payload is None:
        return respond(400, False, "Invalid JSON payload")

    call = payload.call
    logger.info(
        f"Received call_analyzed for Call ID: {call.call_id} (agent {call.agent_name}, "
        f"{call.duration_ms} ms, status {call.call_status}, transcript {len(call.transcript or '')} chars)"
    )

    if not call.call_id:
        return respond(400, False, "Missing required field: call.call_id")

    try:
        outcome = await process_call_analyzed(payload, services)
    except Exception as e:
        logger.error(f"call_analyzed processing failed: {e}")
        return respond(500, False, f"Failed to process call analyzed: {e}")

    return respond(200, True, "Retell call_analyzed webhook processed successfully", {
        "call_id": call.call_id,
        "agent_name": call.agent_name,
        "duration": call.duration_ms,
        "status": call.call_status,
        "sentiment": call.call_analysis.user_sentiment,
        **outcome,
    })


@router.post("/webhook/cal")
async def cal_webhook(req: Request, services: Services = Depends(get_services)):
    """Cal.com booking webhook: log a meeting activity on the attendee."""
    payload = await parse_body(req, CalBookingWebhook)
    if payload is None:
        return respond(400, False, "Invalid JSON payload")

    booking = payload.payload
    logger.info(f"Cal.com webhook: Event={payload.triggerEvent}, ID={booking.id}, Title={booking.title}")

    if not booking.attendees:
        return respond(400, False, "Missing required field: attendees")

    if not booking.startTime or not booking.location:
        return respond(400, False, "Missing required fields: startTime and location")

    try:
        outcome = await process_appointment(payload, services)
    except Exception as e:
        logger.error(f"Appointment processing failed: {e}")
        return respond(500, False, f"Failed to process appointment: {e}")

    return respond(200, True, "Appointment processed successfully", {
        "trigger_event": payload.triggerEvent,
        "booking_id": booking.id,
        "title": booking.title,
        "start_time": booking.startTime,
        "end_time": booking.endTime,
        "location": booking.location,
        "attendees": [attendee.model_dump() for attendee in booking.attendees],
        **outcome,
    })


@router.get("/health")
def health(services: Services = Depends(get_services)):
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "PipCal Webhook Relay",
        "version": VERSION,
        "timestamp": time.time(),
        "mode": "simulation" if services.settings.simulation else "live",
        "services": {
            "dialer": "configured" if services.settings.dialer_configured else "not_configured",
            "call_mappings": services.store.backend,
        }
    }


app.include_router(router)
# Vercel-style deployments route everything under /api
app.include_router(router, prefix="/api")


@app.get("/")
def index():
    return {
        "status": "running",
        "message": "PipCal Webhook Relay",
        "version": VERSION,
        "endpoints": {
            "health": "/health",
            "webhooks": {
                "retell": "/webhook/retell",
                "cal": "/webhook/cal",
                "retell_analyzed": "/webhook/retell/analyzed",
                "pipedrive_lead": "/webhook/pipedrive/lead",
            },
            "test": [f"/test/{kind}" for kind in samples.LIFECYCLE_KINDS]
                    + ["/test/appointment", "/test/call-analyzed", "/test/pipedrive-lead"],
        },
    }


# Test endpoints: run a processor against a canned payload
async def _run_sample(label: str, processor, sample, services: Services) -> JSONResponse:
    try:
        await processor(sample, services)
    except Exception as e:
        logger.error(f"Test {label} failed: {e}")
        return JSONResponse(status_code=500, content={"success": False, "message": f"Test failed: {e}"})
    return JSONResponse(status_code=200, content={
        "success": True,
        "message": f"Test {label} sent successfully!",
        "data": sample.model_dump(mode="json"),
    })


@app.post("/test/appointment")
async def test_appointment(services: Services = Depends(get_services)):
    return await _run_sample("appointment", process_appointment, samples.sample_appointment(), services)


@app.post("/test/call-analyzed")
async def test_call_analyzed(services: Services = Depends(get_services)):
    return await _run_sample("call_analyzed", process_call_analyzed, samples.sample_call_analyzed(), services)


@app.post("/test/pipedrive-lead")
async def test_pipedrive_lead(services: Services = Depends(get_services)):
    return await _run_sample("Pipedrive lead", process_lead_created, samples.sample_lead(), services)


@app.post("/test/{kind}")
async def test_call_event(kind: str, services: Services = Depends(get_services)):
    if kind not in samples.LIFECYCLE_KINDS:
        return JSONResponse(status_code=404, content={"success": False, "message": f"Unknown test event: {kind}"})
    return await _run_sample(f"{kind} call", process_call_event, samples.sample_call_event(kind), services)


# Error handlers
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal server error"}
    )


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting PipCal Webhook Relay on {settings.host}:{settings.port}")

    uvicorn.run(
        "app:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower()
    )
