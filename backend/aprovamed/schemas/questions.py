from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field


class QuizQuestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str
    options: List[str] = Field(default_factory=list)
    correct_answer_index: int | None = Field(default=None, alias="correctAnswerIndex")
    explanation: str = ""


class QuestionExtractionRequest(BaseModel):
    text: str = Field(min_length=1)
    focus: Literal["all", "end"] = "all"


class ExplanationRequest(BaseModel):
    questions: List[QuizQuestion]


class SummaryRequest(BaseModel):
    text: str = Field(min_length=1)


class SummaryRead(BaseModel):
    summary: str
