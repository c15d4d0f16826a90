from fastapi import APIRouter, Depends
from typing import Optional

from ...api.deps import get_clinic, get_identity
from ...schemas.dashboard import SectionResolution, SessionState
from ...services.clinic import Clinic
from ...services.identity import IdentityProvider

router = APIRouter(prefix="/session", tags=["Session"])

@router.get("", response_model=SessionState)
async def session_state(
    section: Optional[str] = None,
    identity: IdentityProvider = Depends(get_identity),
    clinic: Clinic = Depends(get_clinic)
):
    """Resolve the acting user and the view to show."""
    user = identity.current_user()
    gate = clinic.gate
    return SessionState(
        user=user,
        is_loading=identity.is_loading,
        view=gate.resolve_view(user, section or gate.default_section, identity.is_loading),
        sections=gate.allowed_sections(user.role) if user else [],
    )

@router.get("/sections/{section}", response_model=SectionResolution)
async def resolve_section(
    section: str,
    identity: IdentityProvider = Depends(get_identity),
    clinic: Clinic = Depends(get_clinic)
):
    """Resolve a requested section, falling back to the default one."""
    user = identity.current_user()
    resolved = clinic.gate.resolve_view(user, section, identity.is_loading)
    return SectionResolution(
        requested=section,
        resolved=resolved,
        allowed=resolved == section,
    )
