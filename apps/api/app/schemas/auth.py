"""Auth schemas: CurrentUser."""

import uuid

from pydantic import BaseModel

from app.models.enums import UserRole


class CurrentUser(BaseModel):
    """Identity forwarded by the upstream gateway in request headers."""

    user_id: uuid.UUID
    org_id: uuid.UUID
    role: UserRole
