# backend/barbershop/services/client_directory_service.py
"""
Client Directory Service

Phone-keyed client records with exact and fuzzy lookup.

Clients have an immutable surrogate id and bookings reference that id, so
changing a client's phone number is a single-row update in one transaction:
no booking rows move and there is no window in which a client exists under
both numbers.
"""

import logging
import re
from typing import Any, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.constants import (
    CLIENT_SEARCH_LIMIT,
    FUZZY_PHONE_MIN_DIGITS,
    FUZZY_PHONE_SUFFIX_DIGITS,
    PHONE_MAX_DIGITS,
    PHONE_MIN_DIGITS,
)
from ..core.enums import ClientRanking
from ..core.exceptions import (
    BackendUnavailableException,
    ClientIdentityConflictException,
    NotFoundException,
    RepositoryException,
    ValidationException,
)
from ..models.client import Client
from ..repositories import RepositoryFactory
from ..repositories.client_repository import ClientRepository
from .base import BaseService

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(rf"^\+?\d{{{PHONE_MIN_DIGITS},{PHONE_MAX_DIGITS}}}$")
NAME_PATTERN = re.compile(r"^[^\W\d_]+(?: [^\W\d_]+)*$")


def normalize_phone(phone: str) -> str:
    """
    Strip spaces and dashes and validate.

    Raises:
        ValidationException: not an optional ``+`` followed by 8-15 digits
    """
    candidate = re.sub(r"[\s\-]", "", phone or "")
    if not PHONE_PATTERN.match(candidate):
        raise ValidationException(
            f"Invalid phone number: {phone!r}", code="INVALID_PHONE", details={"phone": phone}
        )
    return candidate


def normalize_name(name: str) -> str:
    """Collapse whitespace; letters (accents included) and single spaces only."""
    candidate = " ".join((name or "").split())
    if not candidate or not NAME_PATTERN.match(candidate):
        raise ValidationException(
            "Name must contain only letters and spaces", code="INVALID_NAME", details={"name": name}
        )
    return candidate


def phone_digits(phone: str) -> str:
    return re.sub(r"\D", "", phone or "")


class ClientDirectoryService(BaseService):
    def __init__(self, db: Session, repository: Optional[ClientRepository] = None):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_client_repository(db)

    def _lookup(self, loader: Any, *args: Any) -> Any:
        try:
            return loader(*args)
        except RepositoryException as e:
            self.logger.error(f"Client directory read failed: {e}")
            raise BackendUnavailableException() from e

    def get(self, client_id: str) -> Client:
        client = self._lookup(self.repository.get_by_id, client_id, False)
        if client is None:
            raise NotFoundException(f"Client {client_id} not found", details={"client_id": client_id})
        return client

    def get_by_phone(self, phone: str) -> Client:
        """Exact lookup; raises NotFoundException."""
        normalized = normalize_phone(phone)
        client = self._lookup(self.repository.get_by_phone, normalized)
        if client is None:
            raise NotFoundException(f"No client with phone {normalized}", details={"phone": normalized})
        return client

    @BaseService.measure_operation("find_client_by_phone")
    def find_by_phone(self, phone: str) -> Optional[Client]:
        """
        Exact match first, then a fuzzy match on the trailing digits.

        The fuzzy pass works on the digits-only form of the input: fewer
        than 4 digits never matches, and long inputs are cut down to their
        last 7 digits so country-code and formatting variants still match.
        """
        candidate = re.sub(r"[\s\-]", "", phone or "")
        if candidate:
            client = self._lookup(self.repository.get_by_phone, candidate)
            if client is not None:
                return client

        digits = phone_digits(phone)
        if len(digits) < FUZZY_PHONE_MIN_DIGITS:
            return None
        suffix = digits[-FUZZY_PHONE_SUFFIX_DIGITS:] if len(digits) > FUZZY_PHONE_SUFFIX_DIGITS else digits
        client = self._lookup(self.repository.find_by_phone_suffix, suffix)
        if client is not None:
            self.logger.debug(f"Fuzzy phone match for {phone!r} -> {client.phone}")
        return client

    @BaseService.measure_operation("create_client")
    def create(self, phone: str, full_name: str, ranking: ClientRanking = ClientRanking.NEW) -> Client:
        normalized = normalize_phone(phone)
        name = normalize_name(full_name)

        try:
            with self.transaction():
                client = self.repository.create(
                    phone=normalized, full_name=name, ranking=ClientRanking(ranking).value
                )
        except IntegrityError as e:
            raise ClientIdentityConflictException(normalized) from e

        self.log_operation("create_client", client_id=client.id)
        return client

    @BaseService.measure_operation("update_client")
    def update(self, current_phone: str, **fields: Any) -> Client:
        """
        Update name, ranking and/or phone of the client at ``current_phone``.

        Every field is validated before anything is written, and all changes
        commit together: a phone collision leaves the client untouched.

        Raises:
            NotFoundException: no client has ``current_phone``
            ValidationException: malformed or unknown field
            ClientIdentityConflictException: another client already has the new phone
        """
        unknown = set(fields) - {"full_name", "ranking", "phone"}
        if unknown:
            raise ValidationException(
                f"Cannot update fields: {', '.join(sorted(unknown))}", code="INVALID_FIELDS"
            )

        client = self.get_by_phone(current_phone)
        changes: dict[str, Any] = {}
        if fields.get("full_name") is not None:
            changes["full_name"] = normalize_name(fields["full_name"])
        if fields.get("ranking") is not None:
            try:
                changes["ranking"] = ClientRanking(fields["ranking"]).value
            except ValueError:
                raise ValidationException(f"Unknown ranking: {fields['ranking']}", code="INVALID_RANKING")
        if fields.get("phone") is not None:
            new_phone = normalize_phone(fields["phone"])
            if new_phone != client.phone:
                self._ensure_phone_free(new_phone)
                changes["phone"] = new_phone

        if not changes:
            return client

        try:
            with self.transaction():
                for key, value in changes.items():
                    setattr(client, key, value)
                self.repository.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent create/rename
            raise ClientIdentityConflictException(changes.get("phone", client.phone)) from e

        self.log_operation("update_client", client_id=client.id, fields=sorted(changes))
        return client

    def _ensure_phone_free(self, phone: str) -> None:
        if self._lookup(self.repository.get_by_phone, phone) is not None:
            raise ClientIdentityConflictException(phone)

    @BaseService.measure_operation("rename_client")
    def rename(self, old_phone: str, new_phone: str) -> Client:
        """
        Move a client to a new phone number.

        Bookings follow automatically since they reference the client id.

        Raises:
            NotFoundException: no client has ``old_phone``
            ClientIdentityConflictException: another client already has ``new_phone``
        """
        old_normalized = normalize_phone(old_phone)
        new_normalized = normalize_phone(new_phone)
        client = self.get_by_phone(old_normalized)
        if new_normalized == old_normalized:
            return client

        self._ensure_phone_free(new_normalized)

        try:
            with self.transaction():
                client.phone = new_normalized
                self.repository.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent create/rename
            raise ClientIdentityConflictException(new_normalized) from e

        self.log_operation("rename_client", client_id=client.id)
        return client

    def search_by_name(self, text: str, limit: int = CLIENT_SEARCH_LIMIT) -> List[Client]:
        """Case-insensitive substring search; blank input returns nothing."""
        needle = " ".join((text or "").split())
        if not needle:
            return []
        return self._lookup(self.repository.search_by_name, needle, limit)
