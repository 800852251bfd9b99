"""
API v1 router combining all v1 endpoints.
"""
from fastapi import APIRouter
from quiz_service.api.v1 import health, quiz, admin_quiz, internal_quiz

api_router = APIRouter()

# Include all v1 routers
api_router.include_router(health.router, tags=["health"])
api_router.include_router(quiz.router, prefix="/quiz", tags=["quiz"])
api_router.include_router(admin_quiz.router, prefix="/admin", tags=["admin"])
api_router.include_router(
    internal_quiz.router, prefix="/internal", tags=["internal"]
)
