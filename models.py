from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, model_validator


class Payload(BaseModel):
    """Base for inbound webhook bodies: tolerant of extra keys and numeric strings."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        # JSON null falls back to the field default, like an absent key
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


# Pipedrive lead webhook
class LeadData(Payload):
    id: Optional[str] = None
    person_id: Optional[int] = None
    title: Optional[str] = None
    owner_id: Optional[int] = None
    organization_id: Optional[int] = None
    source_name: Optional[str] = None
    add_time: Optional[str] = None


class LeadMeta(Payload):
    action: Optional[str] = None
    entity: Optional[str] = None
    id: Optional[str] = None
    correlation_id: Optional[str] = None
    attempt: Optional[int] = None
    timestamp: Optional[str] = None


class PipedriveLeadWebhook(Payload):
    data: LeadData = Field(default_factory=LeadData)
    meta: LeadMeta = Field(default_factory=LeadMeta)


# Retell call lifecycle webhook
class RetellCallEvent(Payload):
    call_id: Optional[str] = None
    contact_phone: Optional[str] = None
    transcript: Optional[str] = None
    duration: Optional[str] = None        # "00:02:15"
    status: Optional[str] = None
    timestamp: Optional[str] = None       # ISO-8601
    event: Optional[str] = None


# Retell call_analyzed webhook
class CallAnalysis(Payload):
    call_summary: Optional[str] = None
    in_voicemail: bool = False
    user_sentiment: Optional[str] = None
    call_successful: bool = False
    custom_analysis_data: Dict[str, Any] = Field(default_factory=dict)


class AnalyzedCall(Payload):
    call_id: Optional[str] = None
    call_type: Optional[str] = None
    agent_id: Optional[str] = None
    agent_version: Optional[int] = None
    agent_name: Optional[str] = None
    call_status: Optional[str] = None
    start_timestamp: Optional[int] = None  # epoch ms
    end_timestamp: Optional[int] = None
    duration_ms: Optional[int] = None
    transcript: Optional[str] = None
    disconnection_reason: Optional[str] = None
    call_analysis: CallAnalysis = Field(default_factory=CallAnalysis)
    recording_url: Optional[str] = None
    recording_multi_channel_url: Optional[str] = None
    public_log_url: Optional[str] = None


class RetellCallAnalyzed(Payload):
    event: Optional[str] = None
    call: AnalyzedCall = Field(default_factory=AnalyzedCall)


# Cal.com booking webhook
class Attendee(Payload):
    email: Optional[str] = None
    name: Optional[str] = None


class Booking(Payload):
    id: Optional[int] = None
    title: Optional[str] = None
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    attendees: List[Attendee] = Field(default_factory=list)
    location: Optional[str] = None


class CalBookingWebhook(Payload):
    triggerEvent: Optional[str] = None
    createdAt: Optional[str] = None
    payload: Booking = Field(default_factory=Booking)


class WebhookResponse(BaseModel):
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None
