from typing import Dict, Any
from loguru import logger

from models import RetellCallAnalyzed
from processors.notes import attributed_call_note, call_report_note, transcript_note
from tools.formatting import due_fields, format_hms, from_epoch_ms

# Search term used when a callback cannot be tied to a known person
UNKNOWN_CALLER_TERM = "Unknown"


async def process_call_analyzed(payload: RetellCallAnalyzed, services) -> Dict[str, Any]:
    """
    Reconcile a Retell call_analyzed callback onto the Pipedrive person.

    The call id is resolved against the correlation store. On a hit the stored
    person gets a detailed activity plus a transcript note; on a miss the call
    is logged against the generic unknown-caller contact so it is never dropped.
    """
    call = payload.call
    start = from_epoch_ms(call.start_timestamp)
    end = from_epoch_ms(call.end_timestamp) if call.end_timestamp else start
    duration = format_hms((call.duration_ms or 0) / 1000)
    call_date = start.strftime("%Y-%m-%d")

    if services.settings.simulation:
        logger.info(
            f"[SIMULATION MODE] call_analyzed {call.call_id}: agent={call.agent_name}, "
            f"duration={call.duration_ms}ms, status={call.call_status}, "
            f"sentiment={call.call_analysis.user_sentiment}, successful={call.call_analysis.call_successful}"
        )
        return {"attributed": False, "simulated": True}

    crm = services.crm
    mapping, found = services.store.resolve(call.call_id)

    if found:
        logger.info(f"Found call mapping: {mapping.contact_name} ({mapping.phone_number}) - {mapping.originating_title}")
        person_id = mapping.contact_id
        note = attributed_call_note(call, mapping, start, end, duration)
    else:
        logger.warning(f"No call mapping found for call ID: {call.call_id}, using unknown caller contact")
        contact = await crm.find_or_create_by_phone(UNKNOWN_CALLER_TERM)
        person_id = contact.id
        note = call_report_note(call, start, end, duration)

    try:
        await crm.update_call_fields(person_id, call.transcript or "", duration, call_date)
    except Exception as e:
        logger.warning(f"Failed to update person {person_id} with call data: {e}")

    activity = {
        "subject": f"AI Call Analyzed - {call.agent_name or 'Retell Agent'}",
        "type": "call",
        "person_id": person_id,
        "duration": duration,
        "note": note,
        "done": 1,
    }
    activity.update(due_fields(start))
    created = await crm.create_activity(activity)

    if found:
        try:
            await crm.add_note(person_id, transcript_note(call))
        except Exception as e:
            logger.warning(f"Failed to create transcript note: {e}")

    return {
        "attributed": found,
        "person_id": person_id,
        "activity_id": created.get("id"),
    }
