import os
from typing import AsyncGenerator, Generator

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

os.environ["ENV_STATE"] = "test"
from formapi.database import database  # noqa: E402
from formapi.main import app  # noqa: E402
from formapi.models.form import FormDefinition  # noqa: E402
from formapi.routers.session import registry  # noqa: E402
from formapi.security import create_access_token  # noqa: E402


SURVEY = {
    "title": "Team <b>survey</b>",
    "description": "Tell us about you",
    "sections": [
        {
            "id": "about",
            "title": "About you",
            "questions": [
                {"id": "name", "kind": "short-text", "title": "Name", "required": True},
                {"id": "email", "kind": "email", "title": "Email"},
            ],
        },
        {
            "id": "details",
            "title": "Details",
            "questions": [
                {"id": "age", "kind": "numeric", "title": "Age", "required": True},
                {"id": "bio", "kind": "long-text", "title": "Bio"},
            ],
        },
    ],
    "isPublished": True,
}

QUIZ = {
    "title": "Quick quiz",
    "sections": [
        {
            "id": "only",
            "title": "Questions",
            "questions": [
                {
                    "id": "capital",
                    "kind": "single-choice",
                    "title": "Capital of France?",
                    "options": ["Paris", "Rome"],
                    "correctAnswer": "Paris",
                    "required": True,
                },
                {
                    "id": "primes",
                    "kind": "multi-choice",
                    "title": r"Which are prime? \(n \le 4\)",
                    "options": ["2", "3", "4"],
                    "correctAnswer": ["2", "3"],
                },
            ],
        }
    ],
    "isTestMode": True,
    "isPublished": True,
}


def make_form(data: dict, form_id: str = "form-1", owner_id: str = "owner-1") -> FormDefinition:
    return FormDefinition.model_validate({**data, "id": form_id, "ownerId": owner_id})


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def clear_sessions() -> Generator:
    registry.clear()
    yield
    registry.clear()


@pytest.fixture()
def survey_form() -> FormDefinition:
    return make_form(SURVEY)


@pytest.fixture()
def quiz_form() -> FormDefinition:
    return make_form(QUIZ, form_id="quiz-1")


@pytest.fixture()
def client() -> Generator:
    yield TestClient(app)


@pytest.fixture()
async def db() -> AsyncGenerator:
    await database.connect()
    yield
    await database.disconnect()


@pytest.fixture()
async def async_client(db) -> AsyncGenerator:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def owner_headers() -> dict:
    return {"Authorization": f"Bearer {create_access_token('owner-1', 'owner@example.com')}"}


@pytest.fixture()
def other_owner_headers() -> dict:
    return {"Authorization": f"Bearer {create_access_token('owner-2', 'other@example.com')}"}


async def create_form(async_client: AsyncClient, headers: dict, data: dict) -> dict:
    response = await async_client.post("/api/forms", json=data, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture()
async def created_survey(async_client, owner_headers) -> dict:
    return await create_form(async_client, owner_headers, SURVEY)


@pytest.fixture()
async def created_quiz(async_client, owner_headers) -> dict:
    return await create_form(async_client, owner_headers, QUIZ)
