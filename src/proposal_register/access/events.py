"""
Access Control Events - facts about the administrator and the allowlist

AllowlistGranted and AllowlistRevoked double as the outward notifications;
their payload is exactly the affected identity.
"""

from datetime import datetime

from pydantic import BaseModel


class RegisterInitialized(BaseModel):
    """The administrator was installed and allowlisted"""

    administrator: str
    initialized_at: datetime


class AllowlistGranted(BaseModel):
    """An identity may now create proposals"""

    identity: str


class AllowlistRevoked(BaseModel):
    """An identity may no longer create proposals"""

    identity: str
