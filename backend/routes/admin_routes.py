from datetime import time

from fastapi import APIRouter, Depends, HTTPException, Path, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import require_admin
from backend.core.errors import NotFound, StoreError
from backend.crud import directory
from backend.database import get_db
from backend.models.doctor import Doctor
from backend.models.user import User
from backend.routes.appointment_routes import DoctorResponse
from backend.scheduling.time_utils import coerce_time_of_day, format_time_of_day

router = APIRouter(tags=['admin'])


class CreateDoctorRequest(BaseModel):
    name: str
    email: str
    specialization_id: int | None = None
    license_number: str | None = None
    phone: str | None = None
    bio: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Doctor name is required.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if '@' not in normalized:
            raise ValueError('A valid doctor email is required.')
        return normalized


class ScheduleTemplateRequest(BaseModel):
    start_time: time
    end_time: time
    slot_duration: int
    break_start: time | None = None
    break_end: time | None = None

    @field_validator('start_time', 'end_time', 'break_start', 'break_end', mode='before')
    @classmethod
    def validate_time_of_day(cls, value):
        if value is None:
            return None
        return coerce_time_of_day(value)

    @field_validator('slot_duration')
    @classmethod
    def validate_slot_duration(cls, value: int) -> int:
        if value <= 0:
            raise ValueError('Slot duration must be a positive number of minutes.')
        return value

    @model_validator(mode='after')
    def validate_window(self) -> 'ScheduleTemplateRequest':
        if self.start_time >= self.end_time:
            raise ValueError('Start time must be before end time.')

        if (self.break_start is None) != (self.break_end is None):
            raise ValueError('Break start and break end must be given together.')

        if self.break_start is not None:
            if not self.start_time <= self.break_start < self.break_end <= self.end_time:
                raise ValueError('Break must fall within working hours and start before it ends.')

        return self


class ScheduleTemplateResponse(BaseModel):
    id: int
    doctor_id: int
    day_of_week: int
    start_time: str
    end_time: str
    slot_duration: int
    break_start: str | None = None
    break_end: str | None = None

    @field_validator('start_time', 'end_time', 'break_start', 'break_end', mode='before')
    @classmethod
    def format_time(cls, value):
        if isinstance(value, time):
            return format_time_of_day(value)
        return value

    class Config:
        from_attributes = True


@router.post('/doctors', response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
def add_doctor(
    data: CreateDoctorRequest,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return directory.create_doctor(db, **data.model_dump())
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail='A doctor with this email already exists.',
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreError('Database unavailable.', 'Please retry shortly.') from exc


@router.put('/doctors/{doctor_id}/schedule/{day_of_week}', response_model=ScheduleTemplateResponse)
def set_schedule(
    data: ScheduleTemplateRequest,
    doctor_id: int,
    day_of_week: int = Path(ge=0, le=6),
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        if db.get(Doctor, doctor_id) is None:
            raise NotFound('Doctor not found.')
        return directory.upsert_schedule_template(db, doctor_id, day_of_week, **data.model_dump())
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreError('Database unavailable.', 'Please retry shortly.') from exc
