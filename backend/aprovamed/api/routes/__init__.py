from . import checkout, health, questions, study

__all__ = [
    "checkout",
    "health",
    "questions",
    "study",
]
