from __future__ import annotations

import json

from fastapi import status

from aprovamed.api.deps import get_study_service
from aprovamed.core.config import settings
from aprovamed.main import app
from aprovamed.schemas.questions import QuizQuestion
from aprovamed.services.gemini import GeminiError
from aprovamed.services.question_extraction import QUESTION_SCHEMA
from aprovamed.services.study_material import (
    FLASHCARD_SCHEMA,
    NO_ANSWER,
    StudyMaterialService,
)

STATEMENT = "Paciente de 60 anos com dispneia progressiva e estertores bibasais. Qual o diagnóstico?"


class RecordingGenerator:
    def __init__(self, answer):
        self.answer = answer
        self.calls: list[dict] = []

    def generate(self, prompt, *, response_schema=None, json_response=False):
        self.calls.append({"prompt": prompt, "schema": response_schema, "json": json_response})
        if isinstance(self.answer, Exception):
            raise self.answer
        return self.answer


def _service(answer) -> tuple[StudyMaterialService, RecordingGenerator]:
    generator = RecordingGenerator(answer)
    return StudyMaterialService(generator), generator


def test_flashcards_use_schema_and_first_30000_chars():
    cards = [
        {"question": "Tríade de Beck?", "answer": "Hipotensão, turgência jugular, bulhas abafadas", "tag": "Cardio"},
        {"question": "Sem tag", "answer": "descartado"},
    ]
    service, generator = _service("```json\n" + json.dumps(cards) + "\n```")

    result = service.extract_flashcards("a" * 31000)

    assert [card.tag for card in result] == ["Cardio"]
    assert result[0].mnemonic is None
    assert generator.calls[0]["schema"] == FLASHCARD_SCHEMA
    assert generator.calls[0]["prompt"].endswith("\n" + "a" * 30000)


def test_flashcards_invalid_json_is_empty():
    service, _ = _service("não é json")

    assert service.extract_flashcards("texto") == []


def test_answer_key_entries_are_parsed():
    key = [
        {"identifier": 1, "option": "C", "explanation": "Critérios de Light."},
        {"identifier": "2", "option": "A"},
        {"option": "B"},
    ]
    service, generator = _service(json.dumps(key))

    entries = service.process_answer_key("gabarito " * 5000)

    assert [(entry.identifier, entry.option) for entry in entries] == [("1", "C"), ("2", "A")]
    assert entries[0].explanation == "Critérios de Light."
    assert generator.calls[0]["json"] is True
    assert generator.calls[0]["schema"] is None
    prompt = generator.calls[0]["prompt"]
    assert len(prompt.split("\n", 1)[1]) == 20000


def test_answer_key_that_is_not_a_list_is_none():
    service, _ = _service(json.dumps({"identifier": "1"}))

    assert service.process_answer_key("1-A") is None


def test_summary_from_questions_is_truncated():
    service, generator = _service("  Resumo das questões. ")

    assert service.summarize_questions("q" * 25000) == "Resumo das questões."
    assert generator.calls[0]["prompt"].endswith("\n" + "q" * 20000)


def test_answer_question_uses_first_40000_chars():
    service, generator = _service("")

    assert service.answer_question("d" * 45000, "Qual a dose?") == NO_ANSWER
    prompt = generator.calls[0]["prompt"]
    assert "TEXTO: " + "d" * 40000 + "\n" in prompt
    assert 'PERGUNTA: "Qual a dose?"' in prompt


def test_hint_lists_the_options():
    service, generator = _service("Pense na fisiopatologia.")

    assert service.hint(STATEMENT, ["ICC", "DPOC"]) == "Pense na fisiopatologia."
    assert "A) ICC\nB) DPOC" in generator.calls[0]["prompt"]


def test_similar_question_is_validated():
    similar = {"question": STATEMENT.replace("60", "72"), "options": ["ICC", "DPOC", "TEP"], "correctAnswerIndex": 0}
    service, generator = _service(json.dumps(similar))

    question = service.similar_question(QuizQuestion(question=STATEMENT, options=["ICC", "DPOC"], correct_answer_index=0))

    assert question.options == ["ICC", "DPOC", "TEP"]
    assert generator.calls[0]["schema"] == QUESTION_SCHEMA["items"]
    assert '"correctAnswerIndex": 0' in generator.calls[0]["prompt"]


def test_similar_question_without_options_is_none():
    service, _ = _service(json.dumps({"question": STATEMENT, "options": []}))

    assert service.similar_question(QuizQuestion(question=STATEMENT, options=["A", "B"])) is None


def test_study_routes_answer_503_when_not_configured(client):
    response = client.post(f"{settings.api_v1_str}/flashcards", json={"text": "texto"})

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE


def test_flashcard_route(client):
    cards = [{"question": "Antídoto do paracetamol?", "answer": "N-acetilcisteína", "tag": "Toxicologia"}]
    app.dependency_overrides[get_study_service] = lambda: StudyMaterialService(RecordingGenerator(json.dumps(cards)))
    try:
        response = client.post(f"{settings.api_v1_str}/flashcards", json={"text": "texto"})
    finally:
        app.dependency_overrides.pop(get_study_service, None)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == [{**cards[0], "mnemonic": None}]


def test_unreadable_answer_key_is_502(client):
    app.dependency_overrides[get_study_service] = lambda: StudyMaterialService(RecordingGenerator("???"))
    try:
        response = client.post(f"{settings.api_v1_str}/answer-keys", json={"text": "1-A 2-B"})
    finally:
        app.dependency_overrides.pop(get_study_service, None)

    assert response.status_code == status.HTTP_502_BAD_GATEWAY


def test_answer_route_maps_provider_failure_to_502(client):
    failing = RecordingGenerator(GeminiError("indisponível"))
    app.dependency_overrides[get_study_service] = lambda: StudyMaterialService(failing)
    try:
        response = client.post(f"{settings.api_v1_str}/answers", json={"text": "documento", "question": "O quê?"})
    finally:
        app.dependency_overrides.pop(get_study_service, None)

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json() == {"detail": "indisponível"}


def test_summary_from_questions_route(client):
    app.dependency_overrides[get_study_service] = lambda: StudyMaterialService(RecordingGenerator("Resumo."))
    try:
        response = client.post(f"{settings.api_v1_str}/summaries/from-questions", json={"context": "Q1 ..."})
    finally:
        app.dependency_overrides.pop(get_study_service, None)

    assert response.json() == {"summary": "Resumo."}
