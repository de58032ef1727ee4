from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Any
from loguru import logger

from models import RetellCallEvent
from processors.notes import lifecycle_note
from tools.formatting import due_fields, parse_timestamp


@dataclass(frozen=True)
class LifecycleRule:
    subject: str
    done: int
    update_fields: bool      # write transcript/duration/date custom fields
    required: bool           # activity failure fails the webhook
    opt_out: bool = False
    closing: str = ""


LIFECYCLE_RULES: Dict[str, LifecycleRule] = {
    "call_started": LifecycleRule("AI Call Started", 0, update_fields=False, required=False),
    "call_ended": LifecycleRule("AI Call Ended", 1, update_fields=False, required=False),
    "call.completed": LifecycleRule("AI Call Completed", 1, update_fields=True, required=True),
    "call.hangup": LifecycleRule("Customer Hung Up", 1, update_fields=True, required=True),
    "call.optout": LifecycleRule(
        "Customer Opted Out", 1, update_fields=True, required=True, opt_out=True,
        closing="Customer requested to be removed from contact list.",
    ),
}


def call_time_of(event: RetellCallEvent) -> datetime:
    """Event time; an empty timestamp means now, a malformed one is an error."""
    if not event.timestamp:
        return datetime.now(timezone.utc)
    try:
        return parse_timestamp(event.timestamp)
    except ValueError as e:
        raise ValueError(f"invalid timestamp format: {event.timestamp}") from e


async def process_call_event(event: RetellCallEvent, services) -> Dict[str, Any]:
    """Log one Retell call lifecycle event against the contact found by phone."""
    rule = LIFECYCLE_RULES.get(event.event or "")

    if services.settings.simulation:
        logger.info(
            f"[SIMULATION MODE] Retell {event.event}: call={event.call_id}, phone={event.contact_phone}, "
            f"duration={event.duration}, status={event.status}"
        )
        return {"handled": rule is not None, "simulated": True}

    if rule is None:
        logger.warning(f"Unknown event type: {event.event}")
        return {"handled": False}

    call_time = call_time_of(event)
    crm = services.crm
    contact = await crm.find_or_create_by_phone(event.contact_phone)
    person_id = contact.id
    logger.info(f"Processing {event.event} for person {person_id}")

    if rule.update_fields:
        try:
            await crm.update_call_fields(
                person_id, event.transcript or "", event.duration or "", call_time.strftime("%Y-%m-%d")
            )
        except Exception as e:
            logger.warning(f"Failed to update person {person_id} with call data: {e}")

    if rule.opt_out:
        await crm.mark_do_not_call(person_id)

    activity = {
        "subject": rule.subject,
        "type": "call",
        "person_id": person_id,
        "note": lifecycle_note(rule.subject, event, call_time, rule.closing),
        "done": rule.done,
    }
    if rule.update_fields and event.duration:
        activity["duration"] = event.duration
    activity.update(due_fields(call_time))

    activity_id = None
    try:
        created = await crm.create_activity(activity)
        activity_id = created.get("id")
    except Exception as e:
        if rule.required:
            raise
        logger.warning(f"Failed to create '{rule.subject}' activity: {e}")

    return {"handled": True, "person_id": person_id, "activity_id": activity_id}
