"""
API v1 router setup
Organized into: public, customer (JWT customer) and dashboard (JWT vendor/admin) routes
"""
from fastapi import APIRouter

from slotbook.api.v1.public import auth, slots as public_slots
from slotbook.api.v1.dashboard import schedules, availability, bookings as dashboard_bookings
from slotbook.api.v1.customer import bookings as customer_bookings

api_v1_router = APIRouter()

# ============================================================================
# PUBLIC ROUTES (No authentication required)
# ============================================================================
api_v1_router.include_router(
    auth.router,
    # No prefix needed - auth.router already has "/auth" prefix
    tags=["Authentication"]
)

api_v1_router.include_router(
    public_slots.router,
    tags=["Public"]
)

# ============================================================================
# CUSTOMER ROUTES (JWT authentication, customer role)
# ============================================================================
api_v1_router.include_router(
    customer_bookings.router,
    tags=["Customer"]
)

# ============================================================================
# DASHBOARD ROUTES (JWT authentication, vendor or admin role)
# ============================================================================
api_v1_router.include_router(
    schedules.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)

api_v1_router.include_router(
    availability.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)

api_v1_router.include_router(
    dashboard_bookings.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)


# ============================================================================
# ROOT ENDPOINT - API Info
# ============================================================================
@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """API information and route groups by authentication type."""
    return {
        "version": "1.0",
        "authentication": {
            "public": "No authentication required",
            "customer": "JWT Bearer token required (customer account)",
            "dashboard": "JWT Bearer token required (vendor or admin account)"
        }
    }
