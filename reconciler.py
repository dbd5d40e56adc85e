import logging
from typing import Dict, Iterable, List, Optional

from contact_store import ContactStore, run_in_transaction
from db_models import Contact, ContactResponse, LinkPrecedence
from errors import InvalidInput, InvariantViolation

logger = logging.getLogger(__name__)


def candidate_primary_ids(matches: Iterable[Contact]) -> List[int]:
    """Root ids the matched contacts belong to, distinct, in first-seen order."""
    ids: List[int] = []
    for contact in matches:
        if contact.is_primary:
            root = contact.id
        elif contact.linkedId is not None:
            root = contact.linkedId
        else:
            logger.warning("Secondary contact %s has no linkedId, skipping", contact.id)
            continue
        if root not in ids:
            ids.append(root)
    return ids


def merge_clusters(groups: Iterable[List[Contact]]) -> List[Contact]:
    merged: Dict[int, Contact] = {}
    for group in groups:
        for contact in group:
            merged.setdefault(contact.id, contact)
    return list(merged.values())


def select_primary(cluster: List[Contact]) -> Contact:
    primaries = [c for c in cluster if c.is_primary]
    if not primaries:
        raise InvariantViolation(
            f"No primary contact among {[c.id for c in cluster]}"
        )
    # earliest createdAt wins, lowest id breaks ties
    return min(primaries, key=lambda c: (c.createdAt, c.id))


def needs_new_contact(cluster: List[Contact], email: Optional[str], phone: Optional[str]) -> bool:
    emails = {c.email for c in cluster if c.email}
    phones = {c.phoneNumber for c in cluster if c.phoneNumber}
    return bool((email and email not in emails) or (phone and phone not in phones))


def _primary_first(values: List[str], head: Optional[str]) -> List[str]:
    if head and head in values:
        return [head] + [v for v in values if v != head]
    return values


def build_view(cluster: List[Contact]) -> ContactResponse:
    primaries = [c for c in cluster if c.is_primary]
    if len(primaries) != 1:
        raise InvariantViolation(
            f"Expected one primary contact, found {len(primaries)} among {[c.id for c in cluster]}"
        )
    primary = primaries[0]

    emails = []
    phone_numbers = []
    secondary_ids = []

    for contact in cluster:
        if contact.email and contact.email not in emails:
            emails.append(contact.email)
        if contact.phoneNumber and contact.phoneNumber not in phone_numbers:
            phone_numbers.append(contact.phoneNumber)
        if contact.linkPrecedence == LinkPrecedence.SECONDARY:
            secondary_ids.append(contact.id)

    return ContactResponse(
        primaryContactId=primary.id,
        emails=_primary_first(emails, primary.email),
        phoneNumbers=_primary_first(phone_numbers, primary.phoneNumber),
        secondaryContactIds=secondary_ids
    )


def _reconcile(store: ContactStore, email: Optional[str], phone: Optional[str]) -> ContactResponse:
    matches = store.find_by_email_or_phone(email, phone)

    if not matches:
        contact = store.create_contact(email, phone, None, LinkPrecedence.PRIMARY)
        logger.info("No match, created primary contact %s", contact.id)
        return build_view([contact])

    root_ids = candidate_primary_ids(matches)
    cluster = merge_clusters(store.find_all_by_primary_id(pid) for pid in root_ids)
    logger.debug("Matched %s contacts across roots %s", len(matches), root_ids)

    primary = select_primary(cluster)
    losers = [c.id for c in cluster if c.is_primary and c.id != primary.id]

    if losers:
        store.bulk_demote_to_secondary(losers, primary.id)
        logger.info("Merged primaries %s into %s", losers, primary.id)

    cluster = store.find_all_by_primary_id(primary.id)

    if needs_new_contact(cluster, email, phone):
        contact = store.create_contact(email, phone, primary.id, LinkPrecedence.SECONDARY)
        logger.info("Created secondary contact %s under %s", contact.id, primary.id)
        cluster = store.find_all_by_primary_id(primary.id)

    return build_view(cluster)


def reconcile(email: Optional[str] = None, phone_number: Optional[str] = None, db_name=None) -> ContactResponse:
    email = email or None
    phone_number = phone_number or None

    if not email and not phone_number:
        raise InvalidInput("Either email or phoneNumber must be provided")

    return run_in_transaction(
        lambda store: _reconcile(store, email, phone_number),
        db_name
    )
