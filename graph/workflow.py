from langgraph.graph import StateGraph, START, END
from loguru import logger

from graph.state import LeadCallState
from graph.nodes.fetch import fetch_person
from graph.nodes.extract import extract_phone
from graph.nodes.dial import place_call
from graph.nodes.correlate import record_call
from graph.nodes.track import log_pending_activity


def build_lead_call_workflow(services):
    """Build the lead-created → outbound call workflow bound to one set of services."""

    async def fetch(state: LeadCallState) -> LeadCallState:
        return await fetch_person(state, services.crm)

    async def dial(state: LeadCallState) -> LeadCallState:
        return await place_call(state, services.dialer)

    def correlate(state: LeadCallState) -> LeadCallState:
        return record_call(state, services.store)

    async def track(state: LeadCallState) -> LeadCallState:
        return await log_pending_activity(state, services.crm)

    workflow = StateGraph(LeadCallState)

    workflow.add_node("fetch", fetch)
    workflow.add_node("extract", extract_phone)
    workflow.add_node("dial", dial)
    workflow.add_node("correlate", correlate)
    workflow.add_node("track", track)

    workflow.add_edge(START, "fetch")
    workflow.add_edge("fetch", "extract")

    # No phone number means nothing to dial
    def branch_decision(state: LeadCallState) -> str:
        if state.get("phone_number"):
            return "dial"
        logger.info(f"Lead {state.get('lead_id')} has no dialable phone, ending workflow")
        return "skip"

    workflow.add_conditional_edges(
        "extract",
        branch_decision,
        {
            "dial": "dial",
            "skip": END
        }
    )

    workflow.add_edge("dial", "correlate")
    workflow.add_edge("correlate", "track")
    workflow.add_edge("track", END)

    return workflow.compile()
