# backend/barbershop/services/booking_service.py
"""
Booking Lifecycle Service for the barbershop booking engine.

Sole writer of booking status and of the booking's date/hour range.

Handles:
- Creating bookings (single or multi-service spans)
- Status transitions along the booking state machine
- Rescheduling with self-exclusion from the taken set
- Hard deletion and the commission-paid flag

Every write runs the conflict checker uncached immediately before the
transaction, then inserts slot claims. The claims' unique constraint is
the final word: if a concurrent writer committed first, the flush fails
and the caller gets SlotTakenException.
"""

from dataclasses import dataclass, field
from datetime import date
import logging
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.enums import BookingOrigin, ClientRanking
from ..core.exceptions import (
    BackendUnavailableException,
    BusinessRuleException,
    ClientIdentityConflictException,
    ConflictException,
    InvalidTransitionException,
    NotFoundException,
    RepositoryException,
    SlotTakenException,
    ValidationException,
)
from ..core.timezone_utils import Clock
from ..models.booking import Booking, BookingStatus, format_hour
from ..models.catalog import Barber, Branch, Service
from ..models.client import Client
from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from .base import BaseService
from .cache_service import CacheService
from .catalog_service import CatalogService
from .client_directory_service import normalize_name, normalize_phone
from .conflict_checker import ConflictChecker

logger = logging.getLogger(__name__)

SLOT_CLAIM_CONSTRAINT = "uq_booking_slots_barber_date_hour"

INITIAL_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})

StatusFilter = Union[BookingStatus, str, Iterable[Union[BookingStatus, str]], None]


@dataclass
class BookingDraft:
    """
    Everything needed to create a booking.

    The client is given by ``client_id`` or by ``client_phone``. An unknown
    phone creates the client (``client_name`` required) in the same
    transaction as the booking.
    """

    client_id: Optional[str]
    barber_id: str
    branch_id: str
    service_id: str
    booking_date: date
    start_hour: int
    origin: BookingOrigin = BookingOrigin.GUEST
    extra_service_ids: Sequence[str] = field(default_factory=tuple)
    status: Optional[BookingStatus] = None
    client_phone: Optional[str] = None
    client_name: Optional[str] = None

    @property
    def service_ids(self) -> List[str]:
        return [self.service_id, *self.extra_service_ids]


@dataclass
class RescheduleRequest:
    """
    New placement for an existing booking.

    Unset ids keep the booking's current value. ``extra_service_ids`` set to
    a sequence recomputes the span from the primary plus extra services.
    """

    booking_date: date
    start_hour: int
    barber_id: Optional[str] = None
    branch_id: Optional[str] = None
    service_id: Optional[str] = None
    extra_service_ids: Optional[Sequence[str]] = None
    status: Optional[BookingStatus] = None


def coerce_status(value: Union[BookingStatus, str]) -> BookingStatus:
    try:
        return BookingStatus(value)
    except ValueError:
        raise ValidationException(f"Unknown booking status: {value}", code="INVALID_STATUS")


def is_slot_claim_violation(error: IntegrityError) -> bool:
    message = str(error.orig)
    return SLOT_CLAIM_CONSTRAINT in message or "booking_slots." in message


class BookingLifecycleService(BaseService):
    """
    Service layer for booking operations.

    Transaction boundaries live here; repositories only flush.
    """

    def __init__(
        self,
        db: Session,
        cache: Optional[CacheService] = None,
        repository: Optional[BookingRepository] = None,
        catalog: Optional[CatalogService] = None,
        checker: Optional[ConflictChecker] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db, cache)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.client_repository = RepositoryFactory.create_client_repository(db)
        self.catalog = catalog or CatalogService(db, cache=cache)
        self.checker = checker or ConflictChecker(db, cache=cache, clock=clock)

    # Reads

    def get_booking(self, booking_id: str) -> Booking:
        try:
            booking = self.repository.get_by_id(booking_id)
        except RepositoryException as e:
            raise BackendUnavailableException() from e
        if booking is None:
            raise NotFoundException(f"Booking {booking_id} not found", details={"booking_id": booking_id})
        return booking

    @BaseService.measure_operation("list_bookings")
    def list_bookings(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        barber_id: Optional[str] = None,
        branch_id: Optional[str] = None,
        status: StatusFilter = None,
        client_id: Optional[str] = None,
    ) -> List[Booking]:
        """Bookings matching the filters, newest first."""
        statuses: Optional[List[str]] = None
        if status is not None:
            values = [status] if isinstance(status, (str, BookingStatus)) else list(status)
            statuses = [coerce_status(value).value for value in values]

        try:
            return self.repository.list_bookings(
                start_date=start_date,
                end_date=end_date,
                barber_id=barber_id,
                branch_id=branch_id,
                statuses=statuses,
                client_id=client_id,
            )
        except RepositoryException as e:
            raise BackendUnavailableException() from e

    # Validation helpers

    def _resolve_placement(
        self, barber_id: str, branch_id: str, require_active: bool = True
    ) -> Tuple[Barber, Branch]:
        branch = self.catalog.get_branch(branch_id)
        barber = self.catalog.get_barber(barber_id)
        if barber.branch_id != branch.id:
            raise BusinessRuleException(
                f"Barber {barber.name} does not work at {branch.name}",
                code="BARBER_NOT_IN_BRANCH",
                details={"barber_id": barber.id, "branch_id": branch.id},
            )
        if require_active and not barber.active:
            raise BusinessRuleException(
                f"Barber {barber.name} is not accepting bookings",
                code="BARBER_INACTIVE",
                details={"barber_id": barber.id},
            )
        return barber, branch

    def _get_client(self, client_id: str) -> Client:
        try:
            client = self.client_repository.get_by_id(client_id, load_relationships=False)
        except RepositoryException as e:
            raise BackendUnavailableException() from e
        if client is None:
            raise NotFoundException(f"Client {client_id} not found", details={"client_id": client_id})
        return client

    def _resolve_client(self, draft: BookingDraft) -> Tuple[Optional[Client], Optional[Client]]:
        """
        ``(existing, pending_new)`` for the draft's client reference.

        A new client is built but not added; ``create_booking`` inserts it
        only after the slot check passes.
        """
        if draft.client_id:
            return self._get_client(draft.client_id), None
        if not draft.client_phone:
            raise ValidationException("A client id or phone is required", code="CLIENT_REQUIRED")

        phone = normalize_phone(draft.client_phone)
        try:
            existing = self.client_repository.get_by_phone(phone)
        except RepositoryException as e:
            raise BackendUnavailableException() from e
        if existing is not None:
            return existing, None
        if not draft.client_name:
            raise ValidationException(
                "A name is required for new clients", code="CLIENT_NAME_REQUIRED", details={"phone": phone}
            )
        new_client = Client(
            phone=phone, full_name=normalize_name(draft.client_name), ranking=ClientRanking.NEW.value
        )
        return None, new_client

    @staticmethod
    def _span_for(services: Sequence[Service]) -> int:
        return sum(service.slot_count for service in services)

    def _invalidate_slots(self, *pairs: Tuple[date, str]) -> None:
        for slot_date, barber_id in set(pairs):
            self.checker.oracle.invalidate(slot_date, barber_id)

    def _taken_error(self, error: IntegrityError, barber_id: str, slot_date: date, start_hour: int) -> Exception:
        if is_slot_claim_violation(error):
            self.logger.warning(
                f"Slot claim collision for barber {barber_id} on {slot_date} at {format_hour(start_hour)}"
            )
            return SlotTakenException(
                details={"barber_id": barber_id, "date": slot_date.isoformat(), "hour": format_hour(start_hour)}
            )
        return ConflictException("Booking conflicts with existing data", code="BOOKING_CONFLICT")

    # Creation

    @BaseService.measure_operation("create_booking")
    def create_booking(self, draft: BookingDraft) -> Booking:
        """
        Create a booking after an authoritative conflict check.

        Staff-entered bookings (walk-in, admin) start confirmed; self-service
        ones start pending, unless the draft names an initial status.

        Raises:
            ValidationException: malformed hour, unknown initial status
            NotFoundException: unknown branch, barber, service or client
            BusinessRuleException: barber inactive or in another branch
            PastSlotException, OutsideOperatingHoursException, SlotTakenException
        """
        origin = BookingOrigin(draft.origin)
        if draft.status is not None:
            initial = coerce_status(draft.status)
            if initial not in INITIAL_STATUSES:
                raise ValidationException(
                    f"Bookings cannot be created as {initial.value}", code="INVALID_INITIAL_STATUS"
                )
        else:
            initial = BookingStatus.CONFIRMED if origin.is_staff_entered else BookingStatus.PENDING

        barber, branch = self._resolve_placement(draft.barber_id, draft.branch_id)
        services = self.catalog.get_services_by_ids(draft.service_ids)
        client, new_client = self._resolve_client(draft)
        slot_count = self._span_for(services)

        self.checker.ensure_can_book(barber.id, branch, draft.booking_date, draft.start_hour, slot_count)

        try:
            with self.transaction():
                if new_client is not None:
                    self.client_repository.add_client(new_client)
                    client = new_client
                assert client is not None
                booking = Booking(
                    client_id=client.id,
                    barber_id=barber.id,
                    service_id=services[0].id,
                    branch_id=branch.id,
                    booking_date=draft.booking_date,
                    start_hour=draft.start_hour,
                    end_hour=draft.start_hour + slot_count,
                    status=initial.value,
                    origin=origin.value,
                    commission_paid=False,
                )
                booking.slots = booking.build_slot_claims()
                self.repository.add_booking(booking)
        except IntegrityError as e:
            if new_client is not None and not is_slot_claim_violation(e):
                raise ClientIdentityConflictException(new_client.phone) from e
            raise self._taken_error(e, barber.id, draft.booking_date, draft.start_hour) from e
        finally:
            self._invalidate_slots((draft.booking_date, barber.id))

        self.log_operation(
            "create_booking",
            booking_id=booking.id,
            barber_id=barber.id,
            booking_date=draft.booking_date.isoformat(),
            start_hour=draft.start_hour,
            slot_count=slot_count,
            status=initial.value,
        )
        return booking

    # Transitions

    @BaseService.measure_operation("set_booking_status")
    def set_status(self, booking_id: str, status: Union[BookingStatus, str]) -> Booking:
        """
        Move a booking along the state machine.

        Raises:
            InvalidTransitionException: the move is not allowed from the current status
        """
        target = coerce_status(status)
        booking = self.get_booking(booking_id)
        previous = booking.status

        with self.transaction():
            booking.transition_to(target)
            self.repository.flush()

        self._invalidate_slots((booking.booking_date, booking.barber_id))
        self.log_operation("set_booking_status", booking_id=booking.id, previous=previous, status=target.value)
        return booking

    def confirm(self, booking_id: str) -> Booking:
        return self.set_status(booking_id, BookingStatus.CONFIRMED)

    def cancel(self, booking_id: str) -> Booking:
        return self.set_status(booking_id, BookingStatus.CANCELLED)

    def complete(self, booking_id: str) -> Booking:
        return self.set_status(booking_id, BookingStatus.COMPLETED)

    def mark_no_show(self, booking_id: str) -> Booking:
        return self.set_status(booking_id, BookingStatus.NO_SHOW)

    # Reschedule

    @BaseService.measure_operation("reschedule_booking")
    def reschedule(self, booking_id: str, request: RescheduleRequest) -> Booking:
        """
        Move a pending or confirmed booking to a new placement.

        The booking's own slots are excluded from the taken set. On any
        rejection the booking is left exactly as it was.
        """
        booking = self.get_booking(booking_id)
        current = booking.status_enum
        if not booking.is_reschedulable:
            raise InvalidTransitionException(current.value, "rescheduled", booking_id=booking.id)

        target = coerce_status(request.status) if request.status is not None else current
        if target is not current and not booking.can_transition_to(target):
            raise InvalidTransitionException(current.value, target.value, booking_id=booking.id)

        barber_id = request.barber_id or booking.barber_id
        branch_id = request.branch_id or booking.branch_id
        barber, branch = self._resolve_placement(
            barber_id, branch_id, require_active=barber_id != booking.barber_id
        )

        service_id = request.service_id or booking.service_id
        if request.extra_service_ids is not None:
            slot_count = self._span_for(
                self.catalog.get_services_by_ids([service_id, *request.extra_service_ids])
            )
        elif service_id != booking.service_id:
            slot_count = self.catalog.get_service(service_id).slot_count
        else:
            slot_count = booking.slot_count

        self.checker.ensure_can_book(
            barber.id,
            branch,
            request.booking_date,
            request.start_hour,
            slot_count,
            exclude_booking_id=booking.id,
        )

        old_placement = (booking.booking_date, booking.barber_id)
        try:
            with self.transaction():
                # Claims are unique per hour: the old ones must be gone before
                # the new ones are inserted, or an overlapping move collides with itself.
                booking.release_slots()
                self.repository.flush()

                booking.barber_id = barber.id
                booking.branch_id = branch.id
                booking.service_id = service_id
                booking.booking_date = request.booking_date
                booking.start_hour = request.start_hour
                booking.end_hour = request.start_hour + slot_count
                if target is not current:
                    booking.transition_to(target)
                if booking.holds_slots:
                    booking.slots.extend(booking.build_slot_claims())
                self.repository.flush()
        except IntegrityError as e:
            raise self._taken_error(e, barber.id, request.booking_date, request.start_hour) from e
        finally:
            self._invalidate_slots(old_placement, (request.booking_date, barber.id))

        self.log_operation(
            "reschedule_booking",
            booking_id=booking.id,
            barber_id=barber.id,
            booking_date=request.booking_date.isoformat(),
            start_hour=request.start_hour,
        )
        return booking

    # Deletion and finance flags

    @BaseService.measure_operation("delete_booking")
    def delete_booking(self, booking_id: str) -> None:
        """Hard-delete a booking in any status. Irreversible."""
        booking = self.get_booking(booking_id)
        placement = (booking.booking_date, booking.barber_id)

        with self.transaction():
            self.repository.delete(booking.id)

        self._invalidate_slots(placement)
        self.log_operation("delete_booking", booking_id=booking_id)

    @BaseService.measure_operation("mark_commission_paid")
    def mark_commission_paid(self, booking_ids: Sequence[str], paid: bool = True) -> int:
        """Set the commission-paid flag; returns how many bookings were updated."""
        unique_ids: List[str] = list(dict.fromkeys(booking_ids))
        with self.transaction():
            updated = self.repository.mark_commission_paid(unique_ids, paid=paid)

        if updated != len(unique_ids):
            self.logger.warning(f"Commission flag: {len(unique_ids) - updated} booking ids not found")
        self.log_operation("mark_commission_paid", count=updated, paid=paid)
        return updated
