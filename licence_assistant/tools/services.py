"""Licence service catalog with fees, durations, and document checklists."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class ServiceId(str, Enum):
    """Bookable licence services."""
    NEW_LICENCE = "new licence"
    LICENCE_RENEWAL = "licence renewal"
    REPLACEMENT = "replacement"
    ADDRESS_CHANGE = "address change"
    DRIVING_TEST = "driving test"


@dataclass(frozen=True)
class ServiceDefinition:
    """Static catalog entry for one service."""
    id: ServiceId
    display_name: str
    documents: tuple[str, ...]
    fee: str
    duration: str


SERVICE_CATALOG: dict[ServiceId, ServiceDefinition] = {
    ServiceId.NEW_LICENCE: ServiceDefinition(
        id=ServiceId.NEW_LICENCE,
        display_name="New licence",
        documents=("ID proof", "Address proof", "Passport photo", "Medical certificate"),
        fee="₹500",
        duration="30 minutes",
    ),
    ServiceId.LICENCE_RENEWAL: ServiceDefinition(
        id=ServiceId.LICENCE_RENEWAL,
        display_name="Licence renewal",
        documents=("Current licence", "ID proof", "Passport photo"),
        fee="₹200",
        duration="15 minutes",
    ),
    ServiceId.REPLACEMENT: ServiceDefinition(
        id=ServiceId.REPLACEMENT,
        display_name="Replacement",
        documents=("Police report (if lost)", "ID proof", "Passport photo"),
        fee="₹300",
        duration="20 minutes",
    ),
    ServiceId.ADDRESS_CHANGE: ServiceDefinition(
        id=ServiceId.ADDRESS_CHANGE,
        display_name="Address change",
        documents=("Current licence", "New address proof", "Passport photo"),
        fee="₹100",
        duration="10 minutes",
    ),
    ServiceId.DRIVING_TEST: ServiceDefinition(
        id=ServiceId.DRIVING_TEST,
        display_name="Driving test",
        documents=("Learner's licence", "ID proof", "Passport photo"),
        fee="₹300",
        duration="45 minutes",
    ),
}

# Checked in order; the first group with a matching phrase wins.
SERVICE_KEYWORDS: list[tuple[ServiceId, tuple[str, ...]]] = [
    (ServiceId.NEW_LICENCE, (
        "new licence", "new license", "apply", "applying", "application",
        "first licence", "first license",
    )),
    (ServiceId.LICENCE_RENEWAL, (
        "renew", "renewal", "renewing", "extend", "extension", "expired",
    )),
    (ServiceId.REPLACEMENT, (
        "lost", "damaged", "duplicate", "replace", "replacement", "stolen",
    )),
    (ServiceId.ADDRESS_CHANGE, (
        "address change", "change address", "change my address",
        "update address", "update my address", "new address",
    )),
    (ServiceId.DRIVING_TEST, (
        "driving test", "test", "exam", "practical test", "road test",
    )),
]


def get_all_services() -> list[ServiceDefinition]:
    """Return every catalog entry in catalog order."""
    return list(SERVICE_CATALOG.values())


def get_service(service_id: ServiceId) -> ServiceDefinition:
    """Get the catalog entry for a service id."""
    return SERVICE_CATALOG[ServiceId(service_id)]


def find_service(name: str) -> Optional[ServiceDefinition]:
    """Look up a catalog entry by its id string, or None if unknown."""
    try:
        return SERVICE_CATALOG[ServiceId(name.lower().strip())]
    except ValueError:
        logger.debug("Unknown service id: '%s'", name)
        return None
