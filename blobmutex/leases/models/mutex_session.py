from __future__ import annotations

import datetime
import time
from dataclasses import dataclass, field

from .lease_state import LeaseState


@dataclass(slots=True)
class MutexSession:
    """
    One successful acquisition of the lease on a resource.

    Attributes:
        resource: The container (or other backend resource) the lease is on
        lease_id: Opaque lease identifier issued by the backend
        lease_duration: Duration the lease was granted for, in seconds
        acquired_at: When the lease was acquired (monotonic)
        acquired_at_wall: When the lease was acquired (UTC, ISO-8601)
        renewals: Count of successful renewals
        state: Current state of the session
    """
    resource: str
    lease_id: str
    lease_duration: float
    acquired_at: float = field(default_factory=time.monotonic)
    acquired_at_wall: str = field(
        default_factory=lambda: datetime.datetime.now(datetime.UTC).isoformat()
    )
    renewals: int = 0
    state: LeaseState = LeaseState.ACTIVE

    def is_active(self) -> bool:
        return self.state == LeaseState.ACTIVE

    def held_for(self) -> float:
        return time.monotonic() - self.acquired_at

    def mark_renewed(self) -> None:
        self.renewals += 1

    def mark_released(self) -> None:
        self.state = LeaseState.RELEASED

    def mark_abandoned(self) -> None:
        self.state = LeaseState.ABANDONED
