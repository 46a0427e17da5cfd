from datetime import date, datetime, time

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import require_patient
from backend.core import config
from backend.core.errors import StoreError
from backend.crud import directory
from backend.database import ensure_database_ready, get_db
from backend.models.appointment import APPOINTMENT_TYPES
from backend.models.user import User
from backend.scheduling.availability import build_availability, no_slots_message
from backend.scheduling.booking import BookingRequest, book_appointment
from backend.scheduling.time_utils import coerce_time_of_day, format_time_of_day
from backend.services.meet_service import MeetingProvisioner, get_meeting_provisioner

router = APIRouter(tags=['appointments'])

MAX_APPOINTMENT_NOTES_LENGTH = 600


class SpecializationResponse(BaseModel):
    id: int
    name: str
    description: str | None = None

    class Config:
        from_attributes = True


class DoctorResponse(BaseModel):
    id: int
    name: str
    email: str | None = None
    specialization_id: int | None = None
    phone: str | None = None
    bio: str | None = None

    class Config:
        from_attributes = True


class BookAppointmentRequest(BaseModel):
    doctor_id: int
    specialization_id: int | None = None
    appointment_date: date
    start_time: time
    end_time: time
    type: str
    notes: str | None = None

    @field_validator('start_time', 'end_time', mode='before')
    @classmethod
    def validate_time_of_day(cls, value) -> time:
        return coerce_time_of_day(value)

    @field_validator('type')
    @classmethod
    def validate_type(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in APPOINTMENT_TYPES:
            raise ValueError('Appointment type must be "online" or "in-person".')
        return normalized

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

        return normalized


class AppointmentResponse(BaseModel):
    id: int
    patient_id: int
    doctor_id: int
    specialization_id: int | None = None
    appointment_date: date
    start_time: str
    end_time: str
    type: str
    meet_link: str | None = None
    patient_notes: str | None = None
    status: str
    created_at: datetime | None = None

    @field_validator('start_time', 'end_time', mode='before')
    @classmethod
    def format_time(cls, value) -> str:
        if isinstance(value, time):
            return format_time_of_day(value)
        return value

    class Config:
        from_attributes = True


@router.get('/specializations', response_model=list[SpecializationResponse])
def list_specializations(db: Session = Depends(get_db)):
    try:
        return directory.list_specializations(db)
    except SQLAlchemyError as exc:
        raise StoreError('Database unavailable.', 'Please retry shortly.') from exc


@router.get('/doctors/{specialization_id}', response_model=list[DoctorResponse])
def list_doctors(
    specialization_id: int,
    _: User = Depends(require_patient),
    db: Session = Depends(get_db),
):
    try:
        return directory.list_active_doctors(db, specialization_id)
    except SQLAlchemyError as exc:
        raise StoreError('Database unavailable.', 'Please retry shortly.') from exc


@router.get('/slots/{doctor_id}')
def get_free_slots(
    doctor_id: int,
    _: User = Depends(require_patient),
    db: Session = Depends(get_db),
):
    window = build_availability(db, doctor_id)
    if not window:
        return {'message': no_slots_message(config.AVAILABILITY_HORIZON_DAYS)}
    return [day.to_dict() for day in window]


@router.post('/book', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book(
    data: BookAppointmentRequest,
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db),
    provisioner: MeetingProvisioner = Depends(get_meeting_provisioner),
):
    ensure_database_ready()

    request = BookingRequest(
        patient_id=current_user.id,
        doctor_id=data.doctor_id,
        specialization_id=data.specialization_id,
        appointment_date=data.appointment_date,
        start_time=data.start_time,
        end_time=data.end_time,
        type=data.type,
        notes=data.notes,
    )
    return book_appointment(db, request, provisioner)
