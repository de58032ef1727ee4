import httpx
from dataclasses import dataclass
from typing import Dict, Any, Optional, List
from loguru import logger

from config import Settings
from tools.phone import pick_phone

UNKNOWN_CALLER = "Unknown Caller"


class PipedriveError(Exception):
    """Raised when a Pipedrive request fails or returns an unsuccessful envelope."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class Contact:
    id: int
    name: str
    email: str = ""
    phone: str = ""
    dnc: bool = False


def _first_value(entries: Optional[List[Any]]) -> str:
    for entry in entries or []:
        value = entry.get("value") if isinstance(entry, dict) else entry
        if value:
            return str(value)
    return ""


def contact_from_person(person: Dict[str, Any]) -> Contact:
    """Build a Contact from either a person record or a search hit."""
    phones = person.get("phone") or person.get("phones")
    emails = person.get("email") or person.get("emails")
    return Contact(
        id=int(person["id"]),
        name=person.get("name") or "",
        email=_first_value(emails),
        phone=pick_phone(phones),
    )


class PipedriveClient:
    """Pipedrive CRM v1 REST client."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.api_key = settings.pipedrive_api_key
        self.base_url = settings.pipedrive_base_url
        self.timeout = settings.http_timeout

        if not self.api_key:
            logger.warning("No Pipedrive API key provided, running in simulation mode")

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send a request and unwrap the `data` member of the Pipedrive envelope."""
        query = dict(params or {})
        query["api_token"] = self.api_key

        logger.debug(f"Pipedrive {method} {endpoint} body={json}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method,
                    f"{self.base_url}{endpoint}",
                    params=query,
                    json=json,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as e:
            raise PipedriveError(f"{method} {endpoint} failed: {e}") from e

        logger.debug(f"Pipedrive {method} {endpoint} -> HTTP {response.status_code}")
        if response.status_code >= 400:
            raise PipedriveError(
                f"{method} {endpoint} returned HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise PipedriveError(f"{method} {endpoint} returned invalid JSON", response.status_code) from e

        if not body.get("success", False):
            raise PipedriveError(
                f"{method} {endpoint} was not successful: {body.get('error', 'unknown error')}",
                status_code=response.status_code,
            )
        return body.get("data")

    async def get_person(self, person_id: int) -> Dict[str, Any]:
        """Fetch a person record by id."""
        person = await self._request("GET", f"/persons/{person_id}")
        if not person:
            raise PipedriveError(f"Person {person_id} not found", status_code=404)
        return person

    async def search_person(self, term: str, field: str) -> Optional[Contact]:
        """
        Search persons by a single field.

        Args:
            term: Value to search for
            field: "phone" or "email"

        Returns:
            The best matching contact or None
        """
        data = await self._request(
            "GET",
            "/persons/search",
            params={"term": term, "fields": field, "limit": 1},
        )
        items = (data or {}).get("items") or []
        if not items:
            return None
        hit = items[0].get("item") or items[0]
        contact = contact_from_person(hit)
        logger.info(f"Found existing contact in Pipedrive: ID={contact.id}, Name={contact.name}")
        return contact

    async def create_person(self, name: str, phone: str = "", email: str = "") -> Contact:
        payload: Dict[str, Any] = {"name": name}
        if phone:
            payload["phone"] = [{"value": phone, "primary": True}]
        if email:
            payload["email"] = [{"value": email, "primary": True}]

        person = await self._request("POST", "/persons", json=payload)
        if not person:
            raise PipedriveError("Pipedrive returned no person for create")
        contact = contact_from_person(person)
        logger.info(f"Created new contact in Pipedrive: ID={contact.id}, Name={contact.name}")
        return contact

    async def find_or_create_by_phone(self, phone: str) -> Contact:
        """Find a contact by phone, creating an "Unknown Caller" person when missing."""
        existing = await self.search_person(phone, "phone")
        if existing:
            return existing
        logger.info(f"Creating new contact in Pipedrive for phone: {phone}")
        return await self.create_person(UNKNOWN_CALLER, phone=phone)

    async def find_or_create_by_email(self, email: str, name: str) -> Contact:
        existing = await self.search_person(email, "email")
        if existing:
            if not existing.email:
                existing.email = email
            return existing
        logger.info(f"Creating new contact in Pipedrive for email: {email}")
        return await self.create_person(name or email, email=email)

    async def find_lead_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """
        Find the first lead whose person carries the given email.

        Returns:
            Lead record (with `person_id`) or None
        """
        person = await self.search_person(email, "email")
        if not person:
            return None

        leads = await self._request("GET", "/leads", params={"person_id": person.id, "limit": 1})
        if not leads:
            logger.info(f"No leads found for person ID: {person.id}")
            return None

        lead = leads[0]
        if not lead.get("person_id"):
            lead["person_id"] = person.id
        lead["person_name"] = person.name
        logger.info(f"Found existing lead: ID={lead.get('id')}, Title={lead.get('title')}")
        return lead

    async def create_activity(self, activity: Dict[str, Any]) -> Dict[str, Any]:
        """Create an activity; returns the created record."""
        created = await self._request("POST", "/activities", json=activity)
        created = created or {}
        logger.info(f"Created activity in Pipedrive: ID={created.get('id')}, Subject={activity.get('subject')}")
        return created

    async def add_note(self, person_id: int, content: str) -> Dict[str, Any]:
        note = await self._request("POST", "/notes", json={"content": content, "person_id": person_id})
        logger.info(f"Added note for contact {person_id}")
        return note or {}

    async def update_person(self, person_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        person = await self._request("PUT", f"/persons/{person_id}", json=fields)
        return person or {}

    async def update_call_fields(self, person_id: int, transcript: str, duration: str, call_date: str) -> Dict[str, Any]:
        """Write transcript, duration and call date into the person's custom fields."""
        fields = {
            self.settings.transcript_field: transcript,
            self.settings.duration_field: duration,
            self.settings.call_date_field: call_date,
        }
        person = await self.update_person(person_id, fields)
        logger.info(f"Updated person {person_id} with call custom fields")
        return person

    async def mark_do_not_call(self, person_id: int) -> Dict[str, Any]:
        person = await self.update_person(person_id, {"label": self.settings.dnc_label})
        logger.info(f"Marked contact {person_id} as {self.settings.dnc_label}")
        return person
