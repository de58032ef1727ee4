"""Plain-text bodies for the activities and notes written to Pipedrive."""

from datetime import datetime
from typing import List

from models import AnalyzedCall, Attendee, Booking, RetellCallEvent
from tools.correlation import CorrelationRecord
from tools.formatting import HUMAN_DATETIME


def call_report_note(call: AnalyzedCall, start: datetime, end: datetime, duration: str) -> str:
    """Report for a call we cannot attribute to a known lead."""
    analysis = call.call_analysis
    return f"""AI Call Analysis Report

Call Details:
- Call ID: {call.call_id}
- Agent: {call.agent_name or ''} (v{call.agent_version or 0})
- Type: {call.call_type or ''}
- Status: {call.call_status or ''}
- Duration: {duration}
- Start: {start.strftime(HUMAN_DATETIME)}
- End: {end.strftime(HUMAN_DATETIME)}
- Disconnection: {call.disconnection_reason or ''}

Call Analysis:
- Summary: {analysis.call_summary or ''}
- User Sentiment: {analysis.user_sentiment or ''}
- Call Successful: {analysis.call_successful}
- In Voicemail: {analysis.in_voicemail}

Transcript:
{call.transcript or ''}

Additional Resources:
- Recording: {call.recording_url or ''}
- Multi-Channel Recording: {call.recording_multi_channel_url or ''}
- Public Log: {call.public_log_url or ''}"""


def attributed_call_note(
    call: AnalyzedCall,
    mapping: CorrelationRecord,
    start: datetime,
    end: datetime,
    duration: str,
) -> str:
    """Report for a call matched back to the lead that triggered it."""
    analysis = call.call_analysis
    return f"""AI Call Analysis Complete

Person: {mapping.contact_name}
Phone: {mapping.phone_number}
Lead: {mapping.originating_title}
Date: {start.strftime('%Y-%m-%d')}
Time: {start.strftime('%H:%M:%S')} - {end.strftime('%H:%M:%S')}
Duration: {duration}

Analysis Summary:
{analysis.call_summary or ''}

Sentiment: {analysis.user_sentiment or ''}
Call Successful: {analysis.call_successful}
Disconnection Reason: {call.disconnection_reason or ''}

Agent: {call.agent_name or ''} (v{call.agent_version or 0})
Call ID: {call.call_id}

Full Transcript:
{call.transcript or ''}"""


def transcript_note(call: AnalyzedCall) -> str:
    return f"Call Analysis:\n\n{call.call_analysis.call_summary or ''}\n\nFull Transcript:\n{call.transcript or ''}"


def lifecycle_note(subject: str, event: RetellCallEvent, call_time: datetime, closing: str = "") -> str:
    note = (
        f"{subject}\n\n"
        f"Call ID: {event.call_id}\n"
        f"Phone: {event.contact_phone}\n"
        f"Duration: {event.duration or ''}\n"
        f"Date: {call_time.strftime('%A, %B %d, %Y')}\n"
        f"Time: {call_time.strftime('%I:%M %p')}\n"
        f"Status: {event.status or ''}\n"
        f"Event: {event.event or ''}"
    )
    if event.transcript:
        note += f"\n\nTranscript:\n{event.transcript}"
    if closing:
        note += f"\n\n{closing}"
    return note


def appointment_note(
    booking: Booking,
    trigger_event: str,
    created_at: str,
    person_name: str,
    attendee: Attendee,
    start: datetime,
    end: datetime,
    duration: str,
) -> str:
    start_text = start.strftime(HUMAN_DATETIME)
    lines: List[str] = [
        "Cal.com Appointment Scheduled",
        "",
        f"Person: {person_name}",
        f"Email: {attendee.email or ''}",
        f"Attendee: {attendee.name or ''}",
        "",
        "Appointment Details:",
        f"- Title: {booking.title or ''}",
        f"- Booking ID: {booking.id if booking.id is not None else ''}",
        f"- Date: {start.strftime('%Y-%m-%d')}",
        f"- Start Time: {start_text}",
        f"- End Time: {end.strftime(HUMAN_DATETIME)}",
        f"- Duration: {duration}",
        f"- Location: {booking.location or ''}",
        "",
        "Meeting Information:",
        f"- Event Type: {trigger_event}",
        f"- Created: {created_at}",
        "",
        "Attendees:",
    ]
    for i, att in enumerate(booking.attendees, start=1):
        lines.append(f"  {i}. {att.name or ''} ({att.email or ''})")
    lines += [
        "",
        f"This appointment was created from a Cal.com booking. The meeting is scheduled for {start_text} and will last {duration}.",
    ]
    return "\n".join(lines)
