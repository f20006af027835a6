"""
Access Control Projection - current administrator and allowlist

Rebuilt from the access-control stream on startup and kept current as new
events are appended.
"""

from proposal_register.kernel.events import Event


class Allowlist:
    """
    Projection: administrator identity and the identity → may-create map

    Unseen identities are not allowed. The administrator is inserted with
    True at initialization; after that it is an ordinary entry.
    """

    def __init__(self) -> None:
        self.administrator: str | None = None
        self.entries: dict[str, bool] = {}
        self.version = 0

    def apply_event(self, event: Event) -> None:
        """Apply an event to update projection state"""
        if event.event_type == "RegisterInitialized":
            self.administrator = event.payload["administrator"]
            self.entries[self.administrator] = True

        elif event.event_type == "AllowlistGranted":
            self.entries[event.payload["identity"]] = True

        elif event.event_type == "AllowlistRevoked":
            self.entries[event.payload["identity"]] = False

        else:
            return

        self.version = event.version

    def is_allowed(self, identity: str) -> bool:
        return self.entries.get(identity, False)

    def list_allowed(self) -> list[str]:
        """Identities currently allowed to create proposals, sorted"""
        return sorted(identity for identity, allowed in self.entries.items() if allowed)
