from ebedmas.models.user import User, UserRole, is_admin
from ebedmas.models.learner import Learner
from ebedmas.models.subscription import (
    Subscription, SubscriptionSetting, SubscriptionStatus, PlanType, BillingCycle
)
from ebedmas.models.curriculum import Grade, Subject, Topic, Section, Question, QuestionType
from ebedmas.models.practice import QuizProgress, QuizStatus
from ebedmas.models.quote import SchoolQuoteRequest, SchoolType, QuoteStatus

__all__ = [
    "User", "UserRole", "is_admin", "Learner", "Subscription", "SubscriptionSetting",
    "SubscriptionStatus", "PlanType", "BillingCycle", "Grade", "Subject",
    "Topic", "Section", "Question", "QuestionType", "QuizProgress",
    "QuizStatus", "SchoolQuoteRequest", "SchoolType", "QuoteStatus"
]
