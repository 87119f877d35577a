"""HTTP routers: health probes and the sales resource."""

from src.api.routes.health import router as health_router
from src.api.routes.sales import router as sales_router

__all__ = ["health_router", "sales_router"]
