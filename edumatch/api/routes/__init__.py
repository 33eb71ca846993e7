"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from edumatch.api.routes.student_routes import router as student_router
from edumatch.api.routes.test_routes import router as test_router
from edumatch.api.routes.college_routes import router as college_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(student_router)
api_router.include_router(test_router)
api_router.include_router(college_router)
