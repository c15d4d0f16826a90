from pydantic import BaseModel, ConfigDict
from typing import Optional

from ..core.security import UserRole

class CurrentUser(BaseModel):
    """The acting user as resolved from the identity provider."""
    id: str
    name: str
    role: UserRole

class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    role: UserRole
    email: Optional[str] = None
    phone: Optional[str] = None
