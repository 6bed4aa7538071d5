"""Request context carrying the authenticated identity."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class RequestContext:
    """Request context containing the authenticated user.

    Passed explicitly into every handler and service call that needs to know
    who is acting.
    """

    user_id: UUID
