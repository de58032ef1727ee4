from typing import Dict, Any
from loguru import logger

from models import CalBookingWebhook
from processors.notes import appointment_note
from tools.formatting import due_fields, format_hms, parse_timestamp


async def process_appointment(payload: CalBookingWebhook, services) -> Dict[str, Any]:
    """Create a meeting activity for a Cal.com booking."""
    booking = payload.payload
    attendee = booking.attendees[0]

    if services.settings.simulation:
        logger.info(
            f"[SIMULATION MODE] Cal.com {payload.triggerEvent}: booking={booking.id}, title={booking.title}, "
            f"attendee={attendee.name} ({attendee.email}), start={booking.startTime}, location={booking.location}"
        )
        return {"simulated": True}

    try:
        start = parse_timestamp(booking.startTime)
        end = parse_timestamp(booking.endTime) if booking.endTime else start
    except ValueError as e:
        raise ValueError(f"invalid booking time: {e}") from e
    duration = format_hms((end - start).total_seconds())

    crm = services.crm
    email = attendee.email or ""
    logger.info(f"Processing Cal.com attendee: {attendee.name} ({email})")

    lead = None
    if email:
        try:
            lead = await crm.find_lead_by_email(email)
        except Exception as e:
            logger.warning(f"Lead search failed for {email}: {e}")

    if lead:
        person_id = int(lead["person_id"])
        person_name = lead.get("person_name") or attendee.name or ""
        logger.info(f"Found existing lead: ID={lead.get('id')}, Title={lead.get('title')}, PersonID={person_id}")
    else:
        contact = await crm.find_or_create_by_email(email, attendee.name or "")
        person_id = contact.id
        person_name = contact.name

    activity = {
        "subject": f"Cal.com: {booking.title or 'Meeting'}",
        "type": "meeting",
        "person_id": person_id,
        "note": appointment_note(
            booking,
            payload.triggerEvent or "",
            payload.createdAt or "",
            person_name,
            attendee,
            start,
            end,
            duration,
        ),
        "done": 0,
    }
    activity.update(due_fields(start))
    created = await crm.create_activity(activity)

    return {
        "person_id": person_id,
        "lead_id": lead.get("id") if lead else None,
        "activity_id": created.get("id"),
        "duration": duration,
    }
