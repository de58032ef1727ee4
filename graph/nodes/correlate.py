from graph.state import LeadCallState
from tools.correlation import CorrelationStore

def record_call(state: LeadCallState, store: CorrelationStore) -> LeadCallState:
    """Remember which person the call belongs to, for the call_analyzed callback."""
    store.record(
        state["call_id"],
        state.get("person_name", ""),
        state["phone_number"],
        state.get("lead_title", ""),
        state["person_id"],
    )
    return state
