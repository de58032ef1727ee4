from graph.state import LeadCallState
from tools.phone import phone_from_person
from loguru import logger

def extract_phone(state: LeadCallState) -> LeadCallState:
    """Pick and normalize the person's phone number."""
    phone_number = phone_from_person(state.get("person", {}))
    state["phone_number"] = phone_number

    if phone_number:
        logger.info(f"Found phone number: {phone_number} for person: {state.get('person_name')}")
    else:
        logger.warning(f"No phone number found for person {state.get('person_id')}, skipping call")
        state["status"] = "skipped_no_phone"
    return state
