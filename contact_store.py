import logging
from datetime import datetime
from typing import Callable, List, Optional, TypeVar

from db_models import Contact, LinkPrecedence
from db_setup import transaction

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ContactStore:
    """Queries over the Contact table, bound to one transactional connection."""

    def __init__(self, conn):
        self.conn = conn

    def find_by_email_or_phone(self, email: Optional[str] = None, phone: Optional[str] = None) -> List[Contact]:
        predicates = []
        params = []
        if email:
            predicates.append("email = ?")
            params.append(email)
        if phone:
            predicates.append("phoneNumber = ?")
            params.append(phone)
        if not predicates:
            return []

        where = " OR ".join(predicates)
        query = f"""
            SELECT * FROM Contact
            WHERE deletedAt IS NULL
            AND ({where})
            ORDER BY createdAt ASC, id ASC
        """
        rows = self.conn.execute(query, params).fetchall()
        return [Contact(**dict(row)) for row in rows]

    def find_all_by_primary_id(self, primary_id: int) -> List[Contact]:
        rows = self.conn.execute("""
            SELECT * FROM Contact
            WHERE deletedAt IS NULL
            AND (id = ? OR linkedId = ?)
            ORDER BY createdAt ASC, id ASC
        """, (primary_id, primary_id)).fetchall()
        return [Contact(**dict(row)) for row in rows]

    def get_contact(self, contact_id: int) -> Optional[Contact]:
        row = self.conn.execute("SELECT * FROM Contact WHERE id = ?", (contact_id,)).fetchone()
        return Contact(**dict(row)) if row else None

    def create_contact(
        self,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        linked_id: Optional[int] = None,
        precedence: LinkPrecedence = LinkPrecedence.PRIMARY,
    ) -> Contact:
        now = datetime.now().isoformat()

        cursor = self.conn.execute("""
            INSERT INTO Contact (phoneNumber, email, linkedId, linkPrecedence, createdAt, updatedAt)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (phone, email, linked_id, LinkPrecedence(precedence).value, now, now))

        contact = self.get_contact(cursor.lastrowid)
        logger.debug("Created %s contact %s", contact.linkPrecedence.value, contact.id)
        return contact

    def bulk_demote_to_secondary(self, ids: List[int], new_primary_id: int) -> None:
        if not ids:
            return
        now = datetime.now().isoformat()
        placeholders = ", ".join("?" for _ in ids)

        self.conn.execute(f"""
            UPDATE Contact
            SET linkedId = ?, linkPrecedence = 'secondary', updatedAt = ?
            WHERE id IN ({placeholders})
        """, (new_primary_id, now, *ids))

        # flatten: secondaries of the demoted contacts now hang off the new primary
        cursor = self.conn.execute(f"""
            UPDATE Contact
            SET linkedId = ?, updatedAt = ?
            WHERE linkedId IN ({placeholders})
        """, (new_primary_id, now, *ids))

        logger.debug(
            "Demoted %s under %s, re-pointed %s secondaries",
            ids, new_primary_id, cursor.rowcount
        )


def run_in_transaction(fn: Callable[[ContactStore], T], db_name=None) -> T:
    with transaction(db_name) as conn:
        return fn(ContactStore(conn))
