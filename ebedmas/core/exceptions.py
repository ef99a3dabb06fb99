# ============================================================================
# Custom Exceptions
# ============================================================================
from typing import Optional

class EbedmasException(Exception):
    """Base exception for the learning platform"""
    def __init__(
        self,
        detail: str,
        status_code: int = 400,
        error_code: Optional[str] = None
    ):
        self.detail = detail
        self.status_code = status_code
        self.error_code = error_code or "EBEDMAS_ERROR"
        super().__init__(self.detail)

# ---------------------------------------------------------------------------
# Grading
# ---------------------------------------------------------------------------
class InvalidQuestionState(EbedmasException):
    def __init__(self, question_id=None, message: str = "Question has no correct answer to grade against"):
        super().__init__(
            detail=f"Could not grade question {question_id}: {message}" if question_id else f"Could not grade: {message}",
            status_code=500,
            error_code="INVALID_QUESTION_STATE"
        )
        self.question_id = question_id

class MissingAnswer(EbedmasException):
    def __init__(self):
        super().__init__(
            detail="An answer is required",
            status_code=400,
            error_code="MISSING_ANSWER"
        )

class InvalidAnswerKey(EbedmasException):
    def __init__(self, message: str):
        super().__init__(
            detail=message,
            status_code=422,
            error_code="INVALID_ANSWER_KEY"
        )

class QuestionNotFound(EbedmasException):
    def __init__(self, question_id):
        super().__init__(
            detail=f"Question not found: {question_id}",
            status_code=404,
            error_code="QUESTION_NOT_FOUND"
        )

# ---------------------------------------------------------------------------
# Quiz progress
# ---------------------------------------------------------------------------
class QuizProgressNotFound(EbedmasException):
    def __init__(self, progress_id):
        super().__init__(
            detail=f"Quiz progress not found: {progress_id}",
            status_code=404,
            error_code="QUIZ_PROGRESS_NOT_FOUND"
        )

class QuizProgressClosed(EbedmasException):
    def __init__(self, progress_id, status: str):
        super().__init__(
            detail=f"Quiz progress {progress_id} is already {status}",
            status_code=409,
            error_code="QUIZ_PROGRESS_CLOSED"
        )

class QuestionNotInQuiz(EbedmasException):
    def __init__(self, question_id, topic_id):
        super().__init__(
            detail=f"Question {question_id} is not part of the quiz on topic {topic_id}",
            status_code=400,
            error_code="QUESTION_NOT_IN_QUIZ"
        )

class QuestionAlreadyAnswered(EbedmasException):
    def __init__(self, progress_id, question_id):
        super().__init__(
            detail=f"Question {question_id} was already answered in quiz {progress_id}",
            status_code=409,
            error_code="QUESTION_ALREADY_ANSWERED"
        )

# ---------------------------------------------------------------------------
# Content hierarchy
# ---------------------------------------------------------------------------
class ContentNotFound(EbedmasException):
    def __init__(self, kind: str, content_id):
        super().__init__(
            detail=f"{kind.title()} not found: {content_id}",
            status_code=404,
            error_code="CONTENT_NOT_FOUND"
        )

class ContentHasChildren(EbedmasException):
    def __init__(self, kind: str, child_kind: str, count: int):
        super().__init__(
            detail=f"Cannot delete {kind} with {count} existing {child_kind}",
            status_code=409,
            error_code="CONTENT_HAS_CHILDREN"
        )

# ---------------------------------------------------------------------------
# Subscriptions & payments
# ---------------------------------------------------------------------------
class SubscriptionNotFound(EbedmasException):
    def __init__(self, subscription_id):
        super().__init__(
            detail=f"Subscription not found: {subscription_id}",
            status_code=404,
            error_code="SUBSCRIPTION_NOT_FOUND"
        )

class SubscriptionConflict(EbedmasException):
    def __init__(self, message: str = "User already has a current subscription"):
        super().__init__(
            detail=message,
            status_code=409,
            error_code="SUBSCRIPTION_CONFLICT"
        )

class PersistenceFailure(EbedmasException):
    def __init__(self, operation: str):
        super().__init__(
            detail=f"Could not {operation}; no changes were saved. Please retry.",
            status_code=500,
            error_code="PERSISTENCE_FAILURE"
        )

class InvalidPricingConfiguration(EbedmasException):
    def __init__(self, message: str):
        super().__init__(
            detail=f"Invalid pricing configuration: {message}",
            status_code=500,
            error_code="INVALID_PRICING_CONFIGURATION"
        )

class InvalidPricingUpdate(InvalidPricingConfiguration):
    """Rejected admin edit; the stored pricing is left as it was"""
    def __init__(self, message: str):
        EbedmasException.__init__(
            self,
            detail=message,
            status_code=400,
            error_code="INVALID_PRICING_UPDATE"
        )

class UnknownPlan(EbedmasException):
    def __init__(self, plan_type: str):
        super().__init__(
            detail=f"No pricing configured for plan '{plan_type}'",
            status_code=400,
            error_code="UNKNOWN_PLAN"
        )

class InvalidPlanSelection(EbedmasException):
    def __init__(self, message: str):
        super().__init__(
            detail=message,
            status_code=400,
            error_code="INVALID_PLAN_SELECTION"
        )

class PaymentVerificationFailed(EbedmasException):
    def __init__(self, reference: str, message: str = "Payment verification failed"):
        super().__init__(
            detail=f"{message} ({reference})",
            status_code=400,
            error_code="PAYMENT_VERIFICATION_FAILED"
        )

# ---------------------------------------------------------------------------
# Learners
# ---------------------------------------------------------------------------
class LearnerNotFound(EbedmasException):
    def __init__(self, learner_id):
        super().__init__(
            detail=f"Learner not found: {learner_id}",
            status_code=404,
            error_code="LEARNER_NOT_FOUND"
        )

class LearnerLimitExceeded(EbedmasException):
    def __init__(self, max_learners: int):
        plural = "s" if max_learners != 1 else ""
        super().__init__(
            detail=f"Cannot add more learners. Your subscription plan allows a maximum of {max_learners} learner{plural}.",
            status_code=400,
            error_code="LEARNER_LIMIT_EXCEEDED"
        )

class SubscriptionRequired(EbedmasException):
    def __init__(self, message: str = "No active subscription found"):
        super().__init__(
            detail=message,
            status_code=400,
            error_code="SUBSCRIPTION_REQUIRED"
        )

# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------
class AuthenticationFailed(EbedmasException):
    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(
            detail=message,
            status_code=401,
            error_code="AUTHENTICATION_FAILED"
        )

class PermissionDenied(EbedmasException):
    def __init__(self, message: str = "Admin privileges required"):
        super().__init__(
            detail=message,
            status_code=403,
            error_code="PERMISSION_DENIED"
        )
