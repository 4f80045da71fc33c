"""
HTTP layer of the billing engine.

Mount the versioned router in the FastAPI app:

    from challan_engine.api import api_router
    app.include_router(api_router, prefix=settings.API_V1_STR)
"""

from challan_engine.api.v1.router import router as api_router

__all__ = ["api_router"]
