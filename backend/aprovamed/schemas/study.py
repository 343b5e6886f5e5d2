from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class Flashcard(BaseModel):
    question: str
    answer: str
    tag: str
    mnemonic: str | None = None


class AnswerKeyEntry(BaseModel):
    # O modelo às vezes devolve número da questão/alternativa como inteiro
    model_config = ConfigDict(coerce_numbers_to_str=True)

    identifier: str
    option: str
    explanation: str | None = None


class TextRequest(BaseModel):
    text: str = Field(min_length=1)


class QuestionsSummaryRequest(BaseModel):
    context: str = Field(min_length=1)


class AnswerRequest(BaseModel):
    text: str = Field(min_length=1)
    question: str = Field(min_length=1)


class AnswerRead(BaseModel):
    answer: str


class HintRequest(BaseModel):
    question: str = Field(min_length=1)
    options: List[str] = Field(default_factory=list)


class HintRead(BaseModel):
    hint: str
