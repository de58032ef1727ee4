from typing import Dict, Any
from loguru import logger

from models import PipedriveLeadWebhook


async def process_lead_created(payload: PipedriveLeadWebhook, services) -> Dict[str, Any]:
    """
    Handle a Pipedrive lead webhook by dialing the lead's person.

    Only `create` actions are processed. Without both Pipedrive and Retell
    credentials the call is only logged. Redeliveries of the same lead are
    acknowledged without dialing again.

    Returns:
        Outcome summary: status plus the call id when a call was attempted
    """
    lead, meta = payload.data, payload.meta
    logger.info(f"Received Pipedrive lead {lead.id} (person {lead.person_id}, action {meta.action})")

    if meta.action != "create":
        logger.info(f"Skipping lead event: {meta.action} (only processing 'create' events)")
        return {"status": "ignored_action"}

    settings = services.settings
    if settings.simulation or not settings.dialer_configured:
        logger.info(f"[SIMULATION MODE] Would call person {lead.person_id} for lead '{lead.title}'")
        return {"status": "simulated"}

    key = f"lead:{lead.id}"
    if not services.idem.check_and_set(key):
        logger.warning(f"Duplicate lead delivery ignored: {lead.id} (attempt {meta.attempt})")
        return {"status": "duplicate_ignored"}

    initial_state = {
        "lead_id": lead.id,
        "lead_title": lead.title or "",
        "person_id": lead.person_id,
        "errors": [],
    }

    try:
        result = await services.lead_workflow.ainvoke(initial_state)
    except Exception:
        # Let Pipedrive's redelivery try again
        services.idem.clear_key(key)
        raise

    for error in result.get("errors", []):
        logger.warning(f"Lead {lead.id}: {error}")

    return {
        "status": result.get("status"),
        "call_id": result.get("call_id"),
        "phone_number": result.get("phone_number") or None,
        "activity_id": result.get("activity_id"),
    }
