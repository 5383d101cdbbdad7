from .lease_backend_config import LeaseBackendConfig as LeaseBackendConfig
from .lease_state import LeaseState as LeaseState
from .mutex_session import MutexSession as MutexSession
