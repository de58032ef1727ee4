import httpx
from typing import Dict, Any, Optional
from loguru import logger

from config import Settings

MAX_CALL_SECONDS = 300


class RetellError(Exception):
    """Raised when an outbound call could not be created."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RetellClient:
    """Retell AI call-creation client."""

    def __init__(self, settings: Settings):
        self.api_key = settings.retell_api_key
        self.assistant_id = settings.retell_assistant_id
        self.base_url = settings.retell_base_url
        self.from_number = settings.retell_from_number
        self.timeout = settings.http_timeout
        self.configured = settings.dialer_configured

        if not self.configured:
            logger.warning("Retell API key or assistant id missing, outbound calls will be recorded as failed")

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def build_call_request(self, phone_number: str, person_name: str, lead_title: str) -> Dict[str, Any]:
        return {
            "from_number": self.from_number,
            "to_number": phone_number,
            "assistant_id": self.assistant_id,
            "max_duration_seconds": MAX_CALL_SECONDS,
            "dynamic_variables": {
                "person_name": person_name,
                "lead_title": lead_title,
            },
        }

    async def create_phone_call(self, phone_number: str, person_name: str, lead_title: str) -> str:
        """
        Ask Retell to dial a number with the calling agent.

        Args:
            phone_number: E.164 destination
            person_name: Passed to the agent as a dynamic variable
            lead_title: Passed to the agent as a dynamic variable

        Returns:
            The call id assigned by Retell
        """
        if not self.configured:
            raise RetellError("Retell AI not configured: missing API key or assistant ID")

        logger.info(f"Creating Retell AI call for {person_name} ({phone_number}) - Lead: {lead_title}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/v2/create-phone-call",
                    headers=self._get_headers(),
                    json=self.build_call_request(phone_number, person_name, lead_title),
                )
        except httpx.HTTPError as e:
            raise RetellError(f"Retell AI request failed: {e}") from e

        if response.status_code not in (200, 201):
            raise RetellError(
                f"Retell AI call failed: HTTP {response.status_code}, Response: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise RetellError("Failed to parse Retell AI response", response.status_code) from e

        call_id = body.get("call_id") or body.get("id")
        if not call_id:
            raise RetellError("Retell AI response carried no call id", response.status_code)

        logger.info(f"Successfully created Retell AI call: {call_id}")
        return str(call_id)
