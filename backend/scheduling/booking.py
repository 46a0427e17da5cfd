"""Booking an appointment into a free slot.

The flow is: re-check the slot, resolve both contacts, create the online
meeting when needed, then insert with ``insert_if_no_conflict`` which repeats
the overlap check under the doctor row lock. A failed meeting means no
appointment. Notifications go out after the commit and cannot undo it.
"""

import logging
from dataclasses import dataclass
from datetime import date, time

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core import config
from backend.core.errors import (
    AppointmentError,
    FormatError,
    NotFound,
    NotificationError,
    ProvisioningError,
    SlotConflict,
    StoreError,
)
from backend.crud.appointment import (
    DOCTOR,
    PATIENT,
    Contact,
    find_conflicting_appointments,
    get_contact,
    insert_if_no_conflict,
    specialization_exists,
)
from backend.models.appointment import APPOINTMENT_TYPES, ONLINE, Appointment
from backend.services import email_service, email_templates
from backend.services.meet_service import MeetingProvisioner, MeetingRequest, MeetingResult
from backend.scheduling.time_utils import Interval, format_time_of_day

logger = logging.getLogger(__name__)

CONFIRMATION_SUBJECT = 'Appointment Booked'


@dataclass(frozen=True)
class BookingRequest:
    patient_id: int
    doctor_id: int
    specialization_id: int | None
    appointment_date: date
    start_time: time
    end_time: time
    type: str
    notes: str | None = None

    @property
    def interval(self) -> Interval:
        return Interval(self.start_time, self.end_time)

    @property
    def is_online(self) -> bool:
        return self.type == ONLINE


def validate_booking_request(request: BookingRequest) -> None:
    if request.end_time <= request.start_time:
        raise FormatError('Invalid time range.', 'End time must be after start time.')
    if request.type not in APPOINTMENT_TYPES:
        raise FormatError('Invalid appointment type.', f'Expected one of: {", ".join(APPOINTMENT_TYPES)}.')


def _resolve_contacts(db: Session, request: BookingRequest) -> tuple[Contact, Contact]:
    patient = get_contact(db, PATIENT, request.patient_id)
    doctor = get_contact(db, DOCTOR, request.doctor_id)
    if patient is None or doctor is None:
        raise NotFound('User/Doctor not found.')
    if request.specialization_id is not None and not specialization_exists(db, request.specialization_id):
        raise NotFound('Specialization not found.')
    return patient, doctor


def _provision(
    provisioner: MeetingProvisioner,
    request: BookingRequest,
    patient: Contact,
    doctor: Contact,
) -> MeetingResult:
    meeting = MeetingRequest(
        date=request.appointment_date.isoformat(),
        start=format_time_of_day(request.start_time),
        end=format_time_of_day(request.end_time),
        attendee_emails=(patient.email, doctor.email),
        title=f'Appointment with Dr. {doctor.name}',
        notes=request.notes,
    )
    result = provisioner.provision(meeting)
    if not result.ok:
        error = result.error or ProvisioningError(
            'Failed to generate online meeting link',
            'Google Meet link not generated in response',
        )
        logger.error(
            'Google Meet creation failed for doctor %s on %s: %s',
            request.doctor_id,
            meeting.date,
            error.detail,
        )
        raise error
    return result


def book_appointment(
    db: Session,
    request: BookingRequest,
    provisioner: MeetingProvisioner,
) -> Appointment:
    validate_booking_request(request)

    try:
        if find_conflicting_appointments(db, request.doctor_id, request.appointment_date, request.interval):
            raise SlotConflict('Slot already booked.')
        patient, doctor = _resolve_contacts(db, request)
        # End the read transaction; nothing stays open while the meeting is created.
        db.rollback()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreError('Database unavailable.', 'Please retry the booking.') from exc

    meeting = _provision(provisioner, request, patient, doctor) if request.is_online else None

    fields = {
        'patient_id': request.patient_id,
        'doctor_id': request.doctor_id,
        'specialization_id': request.specialization_id,
        'appointment_date': request.appointment_date,
        'start_time': request.start_time,
        'end_time': request.end_time,
        'type': request.type,
        'meet_link': meeting.link if meeting else None,
        'patient_notes': request.notes,
    }
    try:
        appointment = insert_if_no_conflict(db, fields)
    except AppointmentError:
        if meeting is not None:
            provisioner.release(meeting)
        raise

    logger.info(
        'Booked appointment %s for patient %s with doctor %s on %s %s-%s',
        appointment.id,
        request.patient_id,
        request.doctor_id,
        request.appointment_date,
        format_time_of_day(request.start_time),
        format_time_of_day(request.end_time),
    )

    notify_booking(request, patient, doctor, meeting.link if meeting else None)
    return appointment


def _send_quietly(to: str, subject: str, text: str, html: str) -> bool:
    try:
        email_service.send_appointment_email(to, subject, text, html)
    except NotificationError as exc:
        logger.warning('Notification to %s failed: %s (%s)', to, exc.message, exc.detail)
        return False
    return True


def notify_booking(
    request: BookingRequest,
    patient: Contact,
    doctor: Contact,
    meet_link: str | None,
) -> int:
    """Send confirmations; returns how many messages were delivered."""
    appointment_date = request.appointment_date.isoformat()
    start_time = format_time_of_day(request.start_time)
    end_time = format_time_of_day(request.end_time)

    text, html = email_templates.appointment_confirmation(
        appointment_date,
        start_time,
        end_time,
        is_online=request.is_online,
        meet_link=meet_link,
        address=config.HOSPITAL_ADDRESS,
        notes=request.notes,
    )
    delivered = sum(
        _send_quietly(recipient.email, CONFIRMATION_SUBJECT, text, html)
        for recipient in (patient, doctor)
    )

    if request.is_online:
        text, html = email_templates.organizer_approval(
            appointment_date, start_time, end_time, meet_link, request.notes,
        )
        delivered += _send_quietly(config.EMAIL_USER, CONFIRMATION_SUBJECT, text, html)

    return delivered
