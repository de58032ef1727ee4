import json

import httpx
import pytest
import respx

from config import Settings
from conftest import LIVE_SETTINGS
from tools.pipedrive import PipedriveClient, PipedriveError, UNKNOWN_CALLER
from tools.retell import MAX_CALL_SECONDS, RetellClient, RetellError

PD = "https://pipedrive.test/v1"
RETELL_CALL_URL = "https://retell.test/v2/create-phone-call"


def envelope(data, success=True):
    return httpx.Response(200, json={"success": success, "data": data})


class TestPipedriveClient:
    """Pipedrive REST calls against a mocked transport."""

    def setup_method(self):
        self.client = PipedriveClient(LIVE_SETTINGS)

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_person_sends_token(self):
        route = respx.get(f"{PD}/persons/139").mock(return_value=envelope({"id": 139, "name": "Jane"}))

        person = await self.client.get_person(139)

        assert person["name"] == "Jane"
        assert route.calls.last.request.url.params["api_token"] == "pd-test-token"

    @pytest.mark.asyncio
    @respx.mock
    async def test_http_error_raises(self):
        respx.get(f"{PD}/persons/139").mock(return_value=httpx.Response(404, json={"success": False}))

        with pytest.raises(PipedriveError) as exc:
            await self.client.get_person(139)
        assert exc.value.status_code == 404

    @pytest.mark.asyncio
    @respx.mock
    async def test_unsuccessful_envelope_raises(self):
        respx.get(f"{PD}/persons/139").mock(return_value=httpx.Response(200, json={"success": False, "error": "nope"}))

        with pytest.raises(PipedriveError, match="nope"):
            await self.client.get_person(139)

    @pytest.mark.asyncio
    @respx.mock
    async def test_transport_error_raises(self):
        respx.get(f"{PD}/persons/139").mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(PipedriveError):
            await self.client.get_person(139)

    @pytest.mark.asyncio
    @respx.mock
    async def test_find_by_phone_existing(self):
        search = respx.get(f"{PD}/persons/search").mock(return_value=envelope({
            "items": [{"result_score": 1.0, "item": {
                "id": 55, "name": "Jane", "phones": ["+12125550100"], "emails": ["jane@example.com"],
            }}],
        }))

        contact = await self.client.find_or_create_by_phone("+12125550100")

        assert contact.id == 55
        assert contact.phone == "+12125550100"
        assert contact.email == "jane@example.com"
        assert search.calls.last.request.url.params["fields"] == "phone"
        # Only the search went out; an unmocked POST /persons would have raised
        assert respx.calls.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_find_by_phone_creates_unknown_caller(self):
        respx.get(f"{PD}/persons/search").mock(return_value=envelope({"items": []}))
        create = respx.post(f"{PD}/persons").mock(return_value=envelope({
            "id": 77, "name": UNKNOWN_CALLER, "phone": [{"value": "+12125550100", "primary": True}],
        }))

        contact = await self.client.find_or_create_by_phone("+12125550100")

        assert contact.id == 77
        body = json.loads(create.calls.last.request.content)
        assert body["name"] == UNKNOWN_CALLER
        assert body["phone"] == [{"value": "+12125550100", "primary": True}]

    @pytest.mark.asyncio
    @respx.mock
    async def test_find_or_create_by_email_creates(self):
        respx.get(f"{PD}/persons/search").mock(return_value=envelope({"items": []}))
        create = respx.post(f"{PD}/persons").mock(return_value=envelope({
            "id": 78, "name": "Ada", "email": [{"value": "ada@example.com", "primary": True}],
        }))

        contact = await self.client.find_or_create_by_email("ada@example.com", "Ada")

        assert contact.id == 78
        assert contact.email == "ada@example.com"
        assert json.loads(create.calls.last.request.content)["email"][0]["value"] == "ada@example.com"

    @pytest.mark.asyncio
    @respx.mock
    async def test_find_lead_by_email(self):
        respx.get(f"{PD}/persons/search").mock(return_value=envelope({
            "items": [{"item": {"id": 42, "name": "Ada", "emails": ["ada@example.com"]}}],
        }))
        leads = respx.get(f"{PD}/leads").mock(return_value=envelope([{"id": "lead-42", "title": "Ada lead"}]))

        lead = await self.client.find_lead_by_email("ada@example.com")

        assert lead["id"] == "lead-42"
        assert lead["person_id"] == 42
        assert lead["person_name"] == "Ada"
        assert leads.calls.last.request.url.params["person_id"] == "42"

    @pytest.mark.asyncio
    @respx.mock
    async def test_find_lead_by_email_no_person(self):
        respx.get(f"{PD}/persons/search").mock(return_value=envelope({"items": []}))

        assert await self.client.find_lead_by_email("nobody@example.com") is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_update_call_fields_uses_configured_keys(self):
        route = respx.put(f"{PD}/persons/139").mock(return_value=envelope({"id": 139}))

        await self.client.update_call_fields(139, "transcript", "00:01:00", "2025-03-04")

        body = json.loads(route.calls.last.request.content)
        assert body == {
            LIVE_SETTINGS.transcript_field: "transcript",
            LIVE_SETTINGS.duration_field: "00:01:00",
            LIVE_SETTINGS.call_date_field: "2025-03-04",
        }

    @pytest.mark.asyncio
    @respx.mock
    async def test_mark_do_not_call(self):
        route = respx.put(f"{PD}/persons/139").mock(return_value=envelope({"id": 139}))

        await self.client.mark_do_not_call(139)

        assert json.loads(route.calls.last.request.content) == {"label": "Do Not Contact"}

    @pytest.mark.asyncio
    @respx.mock
    async def test_create_activity_returns_record(self):
        route = respx.post(f"{PD}/activities").mock(return_value=envelope({"id": 501, "subject": "x"}))

        created = await self.client.create_activity({"subject": "x", "person_id": 139, "done": 0})

        assert created["id"] == 501
        assert json.loads(route.calls.last.request.content)["person_id"] == 139


class TestRetellClient:
    """Outbound call creation."""

    def setup_method(self):
        self.client = RetellClient(LIVE_SETTINGS)

    @pytest.mark.asyncio
    @respx.mock
    async def test_create_phone_call(self):
        route = respx.post(RETELL_CALL_URL).mock(return_value=httpx.Response(201, json={"call_id": "call_abc"}))

        call_id = await self.client.create_phone_call("+12125550100", "Jane", "Rooftop solar")

        assert call_id == "call_abc"
        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer retell-test-key"
        body = json.loads(request.content)
        assert body["to_number"] == "+12125550100"
        assert body["from_number"] == "18005300627"
        assert body["assistant_id"] == "asst_test"
        assert body["max_duration_seconds"] == MAX_CALL_SECONDS
        assert body["dynamic_variables"] == {"person_name": "Jane", "lead_title": "Rooftop solar"}

    @pytest.mark.asyncio
    @respx.mock
    async def test_id_fallback(self):
        respx.post(RETELL_CALL_URL).mock(return_value=httpx.Response(200, json={"id": "call_alt"}))

        assert await self.client.create_phone_call("+12125550100", "Jane", "Lead") == "call_alt"

    @pytest.mark.asyncio
    @respx.mock
    async def test_non_2xx_raises(self):
        respx.post(RETELL_CALL_URL).mock(return_value=httpx.Response(500, text="boom"))

        with pytest.raises(RetellError) as exc:
            await self.client.create_phone_call("+12125550100", "Jane", "Lead")
        assert exc.value.status_code == 500

    @pytest.mark.asyncio
    @respx.mock
    async def test_unconfigured_never_calls_out(self):
        client = RetellClient(Settings(pipedrive_api_key="pd-test-token"))

        with pytest.raises(RetellError, match="not configured"):
            await client.create_phone_call("+12125550100", "Jane", "Lead")
        assert respx.calls.call_count == 0
