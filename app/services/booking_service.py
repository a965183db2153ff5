from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from datetime import datetime, timedelta
from typing import Optional
import logging

from ..core.config import settings
from ..core.errors import (
    ConflictError, ForbiddenError, NotFoundError, UnauthorizedError,
    ValidationError, store_operation
)
from ..core.security import to_canonical_clock, utcnow
from ..models.appointment import Appointment, AppointmentStatus, can_transition
from ..repositories.account_store import AccountStore
from ..repositories.appointment_store import AppointmentStore
from .token_service import TokenService

logger = logging.getLogger(__name__)

class BookingService:
    """Sole writer of appointments.

    ``book`` and ``reschedule`` run their conflict check and their write in
    one transaction that starts by locking the doctor's calendar row, so two
    requests for the same doctor cannot both see the window as free.
    """

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountStore(db)
        self.appointments = AppointmentStore(db)
        self.tokens = TokenService(db)

    @property
    def occupancy(self) -> timedelta:
        return timedelta(minutes=settings.APPOINTMENT_DURATION_MINUTES)

    @store_operation
    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.appointments.find_by_id(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found")
        return appointment

    @store_operation
    def book(self, doctor_id: int, patient_id: int, appointment_time: Optional[datetime]) -> Appointment:
        """Create a Scheduled appointment if the doctor's hour is free."""
        if doctor_id is None or patient_id is None:
            raise ValidationError("Doctor and patient are required")
        appointment_time = to_canonical_clock(appointment_time)
        self._require_future(appointment_time)

        # Locking first makes the conflict query below see every committed booking
        if not self.appointments.lock_doctor_calendar(doctor_id):
            raise ValidationError("Doctor not found")
        if self.accounts.get_patient(patient_id) is None:
            raise ValidationError("Patient not found")

        self._ensure_window_free(doctor_id, appointment_time)

        appointment = Appointment(
            doctor_id=doctor_id,
            patient_id=patient_id,
            appointment_time=appointment_time,
            status=AppointmentStatus.SCHEDULED.value,
        )
        try:
            self.appointments.save(appointment)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning(f"Booking for doctor_id={doctor_id} at {appointment_time} hit the storage constraint: {exc}")
            raise ConflictError() from exc

        self.db.refresh(appointment)
        logger.info(
            f"Booked appointment_id={appointment.id} for patient_id={patient_id} "
            f"with doctor_id={doctor_id} at {appointment_time}"
        )
        return appointment

    @store_operation
    def reschedule(
        self,
        appointment_id: int,
        doctor_id: Optional[int] = None,
        appointment_time: Optional[datetime] = None,
        status: Optional[AppointmentStatus] = None,
    ) -> Appointment:
        """Merge new doctor, time and status into an existing appointment."""
        appointment_time = to_canonical_clock(appointment_time)
        appointment = self.appointments.find_by_id(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found")

        doctor_changed = doctor_id is not None and doctor_id != appointment.doctor_id
        time_changed = appointment_time is not None and appointment_time != appointment.appointment_time
        target_doctor_id = doctor_id if doctor_changed else appointment.doctor_id
        target_time = appointment_time if time_changed else appointment.appointment_time

        if time_changed:
            self._require_future(appointment_time)

        current = AppointmentStatus(appointment.status)
        target_status = current
        if status is not None:
            target_status = self._parse_status(status)
            if not can_transition(current, target_status, settings.ALLOW_STATUS_REGRESSION):
                raise ValidationError(
                    f"Cannot move appointment from {current.name} to {target_status.name}"
                )

        # Returning to Scheduled reclaims the window, same as a move
        reopened = current != AppointmentStatus.SCHEDULED and target_status == AppointmentStatus.SCHEDULED
        if doctor_changed or time_changed or reopened:
            if not self.appointments.lock_doctor_calendar(target_doctor_id):
                raise ValidationError("Invalid doctor")
            if target_status == AppointmentStatus.SCHEDULED:
                self._ensure_window_free(target_doctor_id, target_time, exclude_id=appointment.id)
            appointment.doctor_id = target_doctor_id
            appointment.appointment_time = target_time

        appointment.status = target_status.value

        try:
            self.appointments.save(appointment)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning(f"Rescheduling appointment_id={appointment_id} hit the storage constraint: {exc}")
            raise ConflictError() from exc

        self.db.refresh(appointment)
        logger.info(f"Updated appointment_id={appointment.id}: doctor_id={appointment.doctor_id}, time={appointment.appointment_time}, status={appointment.status}")
        return appointment

    @store_operation
    def cancel(self, appointment_id: int, token: str) -> None:
        """Delete an appointment on behalf of the patient who owns it."""
        appointment = self.appointments.find_by_id(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found")

        identifier = self.tokens.extract_identifier(token)
        if identifier is None:
            raise UnauthorizedError("Invalid token")

        requester = self.accounts.find_patient_by_email(identifier)
        if requester is None:
            raise ForbiddenError("Only patients can cancel their appointments")
        if appointment.patient_id != requester.id:
            raise ForbiddenError("You can only cancel your own appointments")

        self.appointments.delete(appointment)
        self.db.commit()
        logger.info(f"Cancelled appointment_id={appointment_id} for patient_id={requester.id}")

    @store_operation
    def change_status(self, appointment_id: int, status: AppointmentStatus) -> Appointment:
        """Overwrite the status, e.g. when a prescription completes a visit."""
        status = self._parse_status(status)
        appointment = self.appointments.find_by_id(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found")

        self.appointments.update_status(appointment_id, status)
        self.db.commit()
        self.db.refresh(appointment)
        return appointment

    def _parse_status(self, status) -> AppointmentStatus:
        try:
            return AppointmentStatus(int(status))
        except (TypeError, ValueError):
            raise ValidationError(f"Unknown appointment status: {status}")

    def _require_future(self, appointment_time: Optional[datetime]) -> None:
        if appointment_time is None:
            raise ValidationError("Appointment time is required")
        if appointment_time <= utcnow():
            raise ValidationError("Appointment time must be in the future")

    def _ensure_window_free(self, doctor_id: int, start: datetime, exclude_id: Optional[int] = None) -> None:
        # Any Scheduled start in (start - 1h, start + 1h) overlaps [start, start + 1h)
        window = self.occupancy
        taken = self.appointments.find_by_doctor_in_window(
            doctor_id,
            start - window + timedelta(microseconds=1),
            start + window,
            status=AppointmentStatus.SCHEDULED,
            exclude_id=exclude_id,
        )
        if taken:
            logger.warning(
                f"Scheduling conflict for doctor_id={doctor_id} at {start}: "
                f"overlaps appointment_id={taken[0].id}"
            )
            raise ConflictError()
