"""
Role-based access control.

All permission decisions come from the two static tables below. Section
lookups never fail: anything not allowed resolves to the default section,
so every (role, section) pair has a defined outcome. Operation checks are
used by the services for hard denial.
"""

import logging
from typing import Dict, FrozenSet, List, Optional

from ..core.config import settings
from ..core.errors import AccessDenied
from ..core.security import UserRole
from ..schemas.user import CurrentUser

logger = logging.getLogger(__name__)

ALL_ROLES: FrozenSet[UserRole] = frozenset(UserRole)
CLINICIANS = frozenset({UserRole.DENTIST, UserRole.ADMIN})
CLINIC_TEAM = frozenset({UserRole.STAFF, UserRole.DENTIST, UserRole.ADMIN})

# Sections
DASHBOARD = "dashboard"
BOOK_APPOINTMENT = "book-appointment"
APPOINTMENTS = "appointments"
PATIENTS = "patients"
WALK_IN = "walk-in"
MY_PROFILE = "my-profile"

# Views that are not sections
LOADING_VIEW = "loading"
LANDING_VIEW = "landing"

# Navigation order matters: it is the order sections are listed in
SECTION_RULES: Dict[str, FrozenSet[UserRole]] = {
    DASHBOARD: ALL_ROLES,
    BOOK_APPOINTMENT: ALL_ROLES,
    APPOINTMENTS: ALL_ROLES,
    PATIENTS: CLINICIANS,
    WALK_IN: CLINIC_TEAM,
    MY_PROFILE: frozenset({UserRole.PATIENT}),
}

OPERATION_RULES: Dict[str, FrozenSet[UserRole]] = {
    "appointment:book": ALL_ROLES,
    "appointment:view-all": CLINIC_TEAM,
    "appointment:cancel": ALL_ROLES,
    "appointment:complete": CLINIC_TEAM,
    "appointment:mark-no-show": CLINIC_TEAM,
    "appointment:delete": frozenset({UserRole.STAFF, UserRole.ADMIN}),
    "walk-in:view": CLINIC_TEAM,
    "walk-in:enqueue": CLINIC_TEAM,
    "walk-in:dequeue": CLINIC_TEAM,
    "walk-in:complete": CLINIC_TEAM,
    "record:view": CLINICIANS,
    "record:create": CLINICIANS,
    "record:edit": CLINICIANS,
    "dashboard:view": ALL_ROLES,
}


def _as_role(role) -> Optional[UserRole]:
    if role is None or isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError:
        return None


class AccessControlGate:
    def __init__(
        self,
        section_rules: Dict[str, FrozenSet[UserRole]] = SECTION_RULES,
        operation_rules: Dict[str, FrozenSet[UserRole]] = OPERATION_RULES,
        default_section: str = settings.DEFAULT_SECTION,
    ):
        if default_section not in section_rules or section_rules[default_section] != ALL_ROLES:
            raise ValueError(f"Default section {default_section!r} must be open to every role")
        self.section_rules = section_rules
        self.operation_rules = operation_rules
        self.default_section = default_section

    def can_access(self, role, section: str) -> bool:
        """Return True if ``role`` may open ``section``."""
        role = _as_role(role)
        return role is not None and role in self.section_rules.get(section, frozenset())

    def can_perform(self, role, operation: str) -> bool:
        """Return True if ``role`` may run ``operation``."""
        role = _as_role(role)
        return role is not None and role in self.operation_rules.get(operation, frozenset())

    def require(self, role, operation: str) -> None:
        """Raise ``AccessDenied`` unless ``role`` may run ``operation``."""
        if not self.can_perform(role, operation):
            role_name = role.value if isinstance(role, UserRole) else role
            logger.info(f"Denied {operation} for role {role_name}")
            raise AccessDenied(f"Role {role_name} may not perform {operation}")

    def resolve_section(self, role, requested: str) -> str:
        if self.can_access(role, requested):
            return requested
        return self.default_section

    def resolve_view(
        self,
        user: Optional[CurrentUser],
        requested: str,
        is_loading: bool = False,
    ) -> str:
        """Map the session state and a requested section to the view to show.

        While the session bootstraps nothing is resolved yet; anonymous
        visitors have no section access and land on the public page.
        """
        if is_loading:
            return LOADING_VIEW
        if user is None:
            return LANDING_VIEW
        return self.resolve_section(user.role, requested)

    def allowed_sections(self, role) -> List[str]:
        return [section for section in self.section_rules if self.can_access(role, section)]
