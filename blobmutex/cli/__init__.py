from .command import (
    blobmutex as blobmutex,
    run as run,
    run_singleton as run_singleton,
)
