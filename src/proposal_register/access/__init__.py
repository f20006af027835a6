"""
Access Control - who may create proposals

A single administrator, installed once, edits an allowlist of identities
permitted to create proposals. Voting and closing are open to everyone and
never consult this module.
"""

from proposal_register.access.handlers import AccessCommandHandlers
from proposal_register.access.projections import Allowlist

__all__ = [
    "AccessCommandHandlers",
    "Allowlist",
]
