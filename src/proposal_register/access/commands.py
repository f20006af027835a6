"""
Access Control Commands - intentions to change who may create proposals
"""

from pydantic import BaseModel, Field


class InitializeRegister(BaseModel):
    """
    Install the administrator

    Runs once per register. The initializing identity becomes the
    administrator and is allowlisted.
    """

    administrator: str = Field(..., min_length=1)


class GrantProposer(BaseModel):
    """Allow an identity to create proposals"""

    target_id: str = Field(..., min_length=1)


class RevokeProposer(BaseModel):
    """Withdraw an identity's permission to create proposals"""

    target_id: str = Field(..., min_length=1)
