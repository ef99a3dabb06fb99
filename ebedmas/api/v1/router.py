# ============================================================================
# Main API Router
# ============================================================================
from fastapi import APIRouter

from ebedmas.api.v1 import (
    admin_content,
    admin_users,
    auth,
    curriculum,
    learners,
    payments,
    questions,
    quiz,
    quote_requests,
    subscriptions,
)

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(subscriptions.router)
api_router.include_router(payments.router)
api_router.include_router(learners.router)
api_router.include_router(curriculum.router)
api_router.include_router(questions.router)
api_router.include_router(quiz.router)
api_router.include_router(quote_requests.router)

# Grades, Subjects, Topics, Sections, Questions
api_router.include_router(admin_content.router)
# Users, roles
api_router.include_router(admin_users.router)
