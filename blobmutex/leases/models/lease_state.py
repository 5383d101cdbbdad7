from enum import Enum


class LeaseState(Enum):
    """State of a lease."""
    ACTIVE = "active"          # Lease is held and believed live
    RELEASED = "released"      # Lease was explicitly released
    ABANDONED = "abandoned"    # Renewal failed, left for the backend to expire
    EXPIRED = "expired"        # Lease outlived its duration without renewal
