from typing import TypedDict, Optional, List, Dict, Any

class LeadCallState(TypedDict, total=False):
    """State shape for the lead-to-call workflow."""
    lead_id: str
    lead_title: str
    person_id: int
    person: Dict[str, Any]           # raw Pipedrive person record
    person_name: str
    phone_number: str                # E.164, empty when the person has none
    call_id: Optional[str]           # Retell id or "failed-..." placeholder
    activity_id: Optional[int]
    status: str                      # "called" | "call_failed" | "skipped_no_phone"
    errors: List[str]
