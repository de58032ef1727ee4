from graph.state import LeadCallState
from tools.pipedrive import PipedriveClient
from loguru import logger

async def fetch_person(state: LeadCallState, crm: PipedriveClient) -> LeadCallState:
    """Load the person attached to the lead. Failure here aborts the event."""
    person_id = state["person_id"]
    logger.info(f"Fetching person {person_id} for lead: {state.get('lead_id', 'unknown')}")

    person = await crm.get_person(person_id)

    state["person"] = person
    state["person_name"] = person.get("name") or ""
    return state
