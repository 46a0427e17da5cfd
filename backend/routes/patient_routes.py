from datetime import date

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import require_patient
from backend.core.errors import StoreError
from backend.crud.appointment import list_patient_appointments
from backend.database import get_db
from backend.models.user import User
from backend.routes.appointment_routes import AppointmentResponse

router = APIRouter(tags=['patients'])


class DashboardAppointmentResponse(AppointmentResponse):
    doctor_name: str | None = None


class DashboardResponse(BaseModel):
    upcoming: list[DashboardAppointmentResponse]
    history: list[DashboardAppointmentResponse]


def _with_doctor_name(rows) -> list[DashboardAppointmentResponse]:
    return [
        DashboardAppointmentResponse.model_validate(appointment).model_copy(update={'doctor_name': doctor_name})
        for appointment, doctor_name in rows
    ]


@router.get('/dashboard', response_model=DashboardResponse)
def get_dashboard(
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db),
):
    try:
        upcoming, history = list_patient_appointments(db, current_user.id, date.today())
    except SQLAlchemyError as exc:
        raise StoreError('Database unavailable.', 'Please retry shortly.') from exc

    return DashboardResponse(upcoming=_with_doctor_name(upcoming), history=_with_doctor_name(history))
