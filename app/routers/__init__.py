# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - clients.py: Client intake (multipart create)
# - catalog.py: Services and receiver accounts for the intake form
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import clients
from . import catalog

__all__ = [
    "health",
    "clients",
    "catalog",
]
