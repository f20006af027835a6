"""
Access Control Invariants - pure checks guarding allowlist mutation

Only one rule matters here: the administrator, and nobody else, edits the
allowlist. Nothing protects the administrator's own entry; revoking it is
allowed and leaves the administrator unable to create proposals until it
grants itself again.
"""

from proposal_register.access.projections import Allowlist
from proposal_register.kernel.errors import AlreadyInitialized, NotInitialized, Unauthorized


def validate_not_initialized(allowlist: Allowlist) -> None:
    """
    Raises:
        AlreadyInitialized: If an administrator is already installed
    """
    if allowlist.administrator is not None:
        raise AlreadyInitialized(allowlist.administrator)


def validate_initialized(allowlist: Allowlist) -> None:
    """
    Raises:
        NotInitialized: If no administrator has been installed yet
    """
    if allowlist.administrator is None:
        raise NotInitialized()


def validate_administrator(requester_id: str, allowlist: Allowlist, action: str) -> None:
    """
    Ensure the requester is the administrator

    Args:
        requester_id: Identity attempting the change
        allowlist: Current allowlist projection
        action: Human-readable description for the error message

    Raises:
        NotInitialized: If the register has no administrator yet
        Unauthorized: If requester is not the administrator
    """
    validate_initialized(allowlist)
    if requester_id != allowlist.administrator:
        raise Unauthorized(requester_id, action)
