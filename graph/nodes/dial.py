import time
import uuid
from graph.state import LeadCallState
from tools.retell import RetellClient
from loguru import logger

FAILED_CALL_PREFIX = "failed-"


def placeholder_call_id() -> str:
    """Synthetic id for an attempt the dialer rejected."""
    return f"{FAILED_CALL_PREFIX}{int(time.time())}-{uuid.uuid4().hex[:8]}"


async def place_call(state: LeadCallState, dialer: RetellClient) -> LeadCallState:
    """Request the outbound call; a failure yields a placeholder id instead of an error."""
    try:
        call_id = await dialer.create_phone_call(
            state["phone_number"],
            state.get("person_name", ""),
            state.get("lead_title", ""),
        )
        state["call_id"] = call_id
        state["status"] = "called"
        logger.info(
            f"Created Retell AI call {call_id} for lead {state.get('lead_title')} "
            f"(person: {state.get('person_name')}, phone: {state['phone_number']})"
        )
    except Exception as e:
        error_msg = f"Retell call creation failed: {str(e)}"
        logger.error(error_msg)
        state.setdefault("errors", []).append(error_msg)
        state["call_id"] = placeholder_call_id()
        state["status"] = "call_failed"

    return state
