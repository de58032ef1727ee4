from dataclasses import dataclass, field
from typing import Any
from loguru import logger

from config import Settings
from graph.workflow import build_lead_call_workflow
from tools.correlation import CorrelationStore
from tools.idempotency import Idem
from tools.pipedrive import PipedriveClient
from tools.retell import RetellClient


@dataclass
class Services:
    """Everything an event processor needs, built once at startup."""
    settings: Settings
    crm: PipedriveClient
    dialer: RetellClient
    store: CorrelationStore
    idem: Idem
    _lead_workflow: Any = field(default=None, init=False, repr=False)

    @property
    def lead_workflow(self):
        """Compiled lead-to-call graph, built on first use."""
        if self._lead_workflow is None:
            self._lead_workflow = build_lead_call_workflow(self)
        return self._lead_workflow


def build_services(settings: Settings) -> Services:
    services = Services(
        settings=settings,
        crm=PipedriveClient(settings),
        dialer=RetellClient(settings),
        store=CorrelationStore(redis_url=settings.redis_url, ttl=settings.correlation_ttl),
        idem=Idem(redis_url=settings.redis_url, ttl=settings.idempotency_ttl),
    )

    if settings.simulation:
        logger.warning("Pipedrive API not configured (simulation mode); set PIPEDRIVE_API_KEY to go live")
    else:
        logger.info("Pipedrive API configured (real integration mode)")
    logger.info(f"Call mappings kept in {services.store.backend}")
    return services
