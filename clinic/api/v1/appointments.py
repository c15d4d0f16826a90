from fastapi import APIRouter, Depends, Request
from typing import List, Optional

from ...api.deps import get_clinic, get_current_user, get_current_user_optional, rate_limit_check
from ...schemas.appointment import AppointmentRead, BookingRequest, TransitionRequest
from ...schemas.user import CurrentUser
from ...services.clinic import Clinic

router = APIRouter(prefix="/appointments", tags=["Appointments"])
public_router = APIRouter(prefix="/public", tags=["Public"])

@router.post("", response_model=AppointmentRead, status_code=201)
async def book_appointment(
    details: BookingRequest,
    current_user: CurrentUser = Depends(get_current_user),
    clinic: Clinic = Depends(get_clinic)
):
    """Book an appointment as a signed-in user."""
    return await clinic.appointments.book_appointment(details, current_user)

@router.get("", response_model=List[AppointmentRead])
async def list_appointments(
    status: str = "all",
    current_user: CurrentUser = Depends(get_current_user),
    clinic: Clinic = Depends(get_clinic)
):
    """List appointments, optionally filtered by status."""
    selection = await clinic.appointments.filter_by_status(status, current_user)
    return list(selection)

@router.get("/{appointment_id}", response_model=AppointmentRead)
async def get_appointment(
    appointment_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    clinic: Clinic = Depends(get_clinic)
):
    return await clinic.appointments.get_appointment(appointment_id, current_user)

@router.post("/{appointment_id}/transition", response_model=AppointmentRead)
async def transition_appointment(
    appointment_id: int,
    transition: TransitionRequest,
    current_user: CurrentUser = Depends(get_current_user),
    clinic: Clinic = Depends(get_clinic)
):
    """Move an appointment to a new status."""
    return await clinic.appointments.update_status(
        appointment_id,
        transition.status,
        current_user,
        expected_status=transition.expected_status,
    )

@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    clinic: Clinic = Depends(get_clinic)
):
    await clinic.appointments.delete_appointment(appointment_id, current_user)
    return {"message": "Appointment deleted successfully"}

@public_router.post("/appointments", response_model=AppointmentRead, status_code=201)
async def book_public_appointment(
    details: BookingRequest,
    current_user: Optional[CurrentUser] = Depends(get_current_user_optional),
    clinic: Clinic = Depends(get_clinic),
    _: None = Depends(rate_limit_check)
):
    """Book from the public homepage, with or without an account."""
    return await clinic.appointments.book_appointment(details, current_user)
