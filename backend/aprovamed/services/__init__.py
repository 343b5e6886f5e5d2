from aprovamed.services.asaas import AsaasClient, AsaasError
from aprovamed.services.checkout import CheckoutResult, CheckoutService, build_checkout_service
from aprovamed.services.gemini import GeminiClient, GeminiError
from aprovamed.services.question_extraction import QuestionExtractionService
from aprovamed.services.student import StudentStore
from aprovamed.services.study_material import StudyMaterialService

__all__ = [
    "AsaasClient",
    "AsaasError",
    "CheckoutResult",
    "CheckoutService",
    "GeminiClient",
    "GeminiError",
    "QuestionExtractionService",
    "StudentStore",
    "StudyMaterialService",
    "build_checkout_service",
]
