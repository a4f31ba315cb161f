"""Authorization gate with audit logging."""
from sqlmodel import Session

from ..domain.errors import NotAuthorized
from ..domain.identity import IdentityLike, canonical_identity
from ..logging_config import audit_log
from .authorization import AuthorizationLedger

# unvalidated caller values are logged as a truncated repr
MAX_LOGGED_CALLER = 64


class AccessGate:
    def __init__(self, session: Session) -> None:
        self.ledger = AuthorizationLedger(session)

    def enforce(self, caller: IdentityLike, action: str, resource: str) -> str:
        """Return the canonical caller, or raise :class:`NotAuthorized`."""
        allowed = self.ledger.is_authorized(caller)
        actor = canonical_identity(caller) if allowed else repr(caller)[:MAX_LOGGED_CALLER]
        audit_log.access_decision(actor, action, resource, allowed)
        if not allowed:
            raise NotAuthorized()
        return actor
