import os
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Settings
from services import Services
from tools.correlation import CorrelationStore
from tools.idempotency import Idem
from tools.pipedrive import Contact

LIVE_SETTINGS = Settings(
    pipedrive_api_key="pd-test-token",
    pipedrive_base_url="https://pipedrive.test/v1",
    retell_api_key="retell-test-key",
    retell_assistant_id="asst_test",
    retell_base_url="https://retell.test",
    retell_from_number="18005300627",
)

SIMULATION_SETTINGS = Settings()

JANE = {
    "id": 139,
    "name": "Jane",
    "phone": [{"label": "work", "value": "+1 212-555-0100", "primary": True}],
    "email": [{"label": "work", "value": "jane@example.com", "primary": True}],
}


def make_crm(person=None):
    """Pipedrive client double with every coroutine method stubbed."""
    crm = MagicMock()
    crm.get_person = AsyncMock(return_value=person if person is not None else JANE)
    crm.create_activity = AsyncMock(return_value={"id": 501})
    crm.add_note = AsyncMock(return_value={"id": 601})
    crm.update_call_fields = AsyncMock(return_value={})
    crm.mark_do_not_call = AsyncMock(return_value={})
    crm.find_or_create_by_phone = AsyncMock(return_value=Contact(id=900, name="Unknown Caller"))
    crm.find_or_create_by_email = AsyncMock(return_value=Contact(id=700, name="Ada Lovelace", email="ada@example.com"))
    crm.find_lead_by_email = AsyncMock(return_value=None)
    return crm


def make_dialer(call_id="call_7f3a9c"):
    dialer = MagicMock()
    dialer.create_phone_call = AsyncMock(return_value=call_id)
    return dialer


def make_services(settings=LIVE_SETTINGS, person=None):
    return Services(
        settings=settings,
        crm=make_crm(person),
        dialer=make_dialer(),
        store=CorrelationStore(ttl=3600),
        idem=Idem(ttl=3600),
    )


@pytest.fixture
def services():
    return make_services()


@pytest.fixture
def simulated_services():
    return make_services(settings=SIMULATION_SETTINGS)


@pytest.fixture
def lead_payload():
    return {
        "data": {
            "id": "adf21080-0e10-11eb-879b-05d71fb426ec",
            "person_id": 139,
            "title": "Jane - rooftop solar",
            "owner_id": 23836724,
        },
        "meta": {
            "action": "create",
            "entity": "lead",
            "attempt": 1,
        },
    }


@pytest.fixture
def analyzed_payload():
    return {
        "event": "call_analyzed",
        "call": {
            "call_id": "call_7f3a9c",
            "agent_name": "Solar Agent",
            "agent_version": 3,
            "call_status": "ended",
            "start_timestamp": 1760000000000,
            "end_timestamp": 1760000135000,
            "duration_ms": 135000,
            "transcript": "Agent: Hi Jane!\nUser: Hi, yes I'm interested.",
            "disconnection_reason": "user_hangup",
            "call_analysis": {
                "call_summary": "Jane is interested and wants a quote.",
                "user_sentiment": "Positive",
                "call_successful": True,
                "in_voicemail": False,
            },
            "recording_url": "https://example.com/rec.wav",
        },
    }
