"""
API v1 routers

app/api/v1/__init__.py
"""
from fastapi import APIRouter

# Create the main API router
api_router = APIRouter()

# Import individual routers
from app.api.v1.reports import router as reports_router



# Include all routers
api_router.include_router(reports_router, prefix="/reports", tags=["reports"])
