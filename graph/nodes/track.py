from datetime import datetime, timezone, timedelta
from graph.state import LeadCallState
from tools.formatting import due_fields
from tools.pipedrive import PipedriveClient
from loguru import logger

def build_pending_activity(state: LeadCallState, now: datetime) -> dict:
    title = state.get("lead_title", "")
    activity = {
        "subject": f"AI Call Initiated - Lead: {title}",
        "type": "call",
        "person_id": state["person_id"],
        "note": (
            f"Retell AI call initiated for lead: {title}\n"
            f"Call ID: {state['call_id']}\n"
            f"Phone: {state['phone_number']}"
        ),
        "done": 0,
    }
    activity.update(due_fields(now, offset=timedelta(minutes=5)))
    return activity


async def log_pending_activity(state: LeadCallState, crm: PipedriveClient) -> LeadCallState:
    """Leave a pending call activity on the person. Best-effort."""
    activity = build_pending_activity(state, datetime.now(timezone.utc))
    try:
        created = await crm.create_activity(activity)
        state["activity_id"] = created.get("id")
    except Exception as e:
        error_msg = f"Tracking activity creation failed: {str(e)}"
        logger.warning(error_msg)
        state.setdefault("errors", []).append(error_msg)
        state["activity_id"] = None

    return state
