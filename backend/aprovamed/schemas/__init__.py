from aprovamed.schemas import checkout, questions, study

__all__ = [
    "checkout",
    "questions",
    "study",
]
