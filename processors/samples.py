"""Canned webhook bodies used by the /test endpoints."""

import time
from datetime import datetime, timezone, timedelta

from models import CalBookingWebhook, PipedriveLeadWebhook, RetellCallAnalyzed, RetellCallEvent

_LIFECYCLE_SAMPLES = {
    "completed": {
        "contact_phone": "+1234567890",
        "transcript": "Hello, this is a test call. I am interested in your services and would like to schedule a follow-up meeting. The pricing looks reasonable.",
        "duration": "00:03:45",
        "status": "completed",
        "event": "call.completed",
    },
    "hangup": {
        "contact_phone": "+1987654321",
        "transcript": "Hello, I am calling about your services but I need to hang up now. Please call me back later.",
        "duration": "00:01:30",
        "status": "hangup",
        "event": "call.hangup",
    },
    "optout": {
        "contact_phone": "+1555123456",
        "transcript": "Please remove me from your calling list. I do not want to receive any more calls from your company.",
        "duration": "00:00:45",
        "status": "optout",
        "event": "call.optout",
    },
}

LIFECYCLE_KINDS = tuple(_LIFECYCLE_SAMPLES)


def sample_call_event(kind: str) -> RetellCallEvent:
    stamp = int(time.time())
    return RetellCallEvent(
        call_id=f"test-{kind}-{stamp}",
        timestamp=datetime.now(timezone.utc).isoformat(),
        **_LIFECYCLE_SAMPLES[kind],
    )


def sample_appointment() -> CalBookingWebhook:
    now = datetime.now(timezone.utc)
    return CalBookingWebhook.model_validate({
        "triggerEvent": "BOOKING_CREATED",
        "createdAt": now.isoformat(),
        "payload": {
            "id": 12345,
            "title": "Product Demo Meeting",
            "startTime": (now + timedelta(hours=24)).isoformat(),
            "endTime": (now + timedelta(hours=25)).isoformat(),
            "attendees": [{"email": "test@example.com", "name": "Test User"}],
            "location": "https://cal.com/meeting/test123",
        },
    })


def sample_call_analyzed() -> RetellCallAnalyzed:
    now_ms = int(time.time() * 1000)
    return RetellCallAnalyzed.model_validate({
        "event": "call_analyzed",
        "call": {
            "call_id": f"test-analyzed-{now_ms // 1000}",
            "call_type": "web_call",
            "agent_id": "agent_test123",
            "agent_version": 1,
            "agent_name": "Test Agent",
            "call_status": "ended",
            "start_timestamp": now_ms - 5 * 60 * 1000,
            "end_timestamp": now_ms,
            "duration_ms": 300000,
            "transcript": "User: Hello?\nAgent: Hi there! This is a test call from our AI agent. How can I help you today?\nUser: I'm interested in your services.",
            "disconnection_reason": "user_hangup",
            "call_analysis": {
                "call_summary": "The user showed interest in our services during this test call.",
                "in_voicemail": False,
                "user_sentiment": "Positive",
                "call_successful": True,
                "custom_analysis_data": {"interest_level": "high", "follow_up_needed": True},
            },
            "recording_url": "https://example.com/recording.wav",
        },
    })


def sample_lead(person_id: int = 139) -> PipedriveLeadWebhook:
    stamp = int(time.time())
    return PipedriveLeadWebhook.model_validate({
        "data": {
            "id": f"test-lead-{stamp}",
            "person_id": person_id,
            "title": f"Test Lead - {stamp}",
            "source_name": "Test Lead",
        },
        "meta": {
            "action": "create",
            "entity": "lead",
            "id": f"test-meta-{stamp}",
            "attempt": 1,
        },
    })
