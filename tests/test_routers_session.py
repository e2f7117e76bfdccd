import pytest

from formapi.engine.state import SessionStatus
from formapi.models.response import ResponseInput
from formapi.routers.session import registry
from formapi.store import FormStore, store
from tests.conftest import SURVEY, create_form

pytestmark = pytest.mark.anyio


async def start(async_client, form_id) -> dict:
    response = await async_client.post(f"/api/forms/{form_id}/sessions")
    assert response.status_code == 201, response.text
    return response.json()


async def answer(async_client, sid, qid, value):
    return await async_client.put(f"/api/sessions/{sid}/answers/{qid}", json={"value": value})


class TestStart:
    async def test_starts_on_first_section(self, async_client, created_survey):
        session = await start(async_client, created_survey["id"])
        assert session["section_index"] == 0
        assert session["section_count"] == 2
        assert session["status"] == "editing"
        assert session["section"]["id"] == "about"
        assert session["title"]["html"] == "Team <strong>survey</strong>"
        assert session["answers"] == {}

    async def test_unknown_form(self, async_client):
        response = await async_client.post("/api/forms/missing/sessions")
        assert response.status_code == 404

    async def test_unpublished_form(self, async_client, owner_headers):
        form = await create_form(async_client, owner_headers, {**SURVEY, "isPublished": False})
        response = await async_client.post(f"/api/forms/{form['id']}/sessions")
        assert response.status_code == 404

    async def test_unknown_session(self, async_client):
        response = await async_client.get("/api/sessions/nope")
        assert response.status_code == 404


class TestWizard:
    async def test_refuses_to_leave_section_with_missing_required(self, async_client, created_survey):
        sid = (await start(async_client, created_survey["id"]))["session_id"]
        response = await async_client.post(f"/api/sessions/{sid}/navigate", json={"target": 1})
        assert response.status_code == 200
        body = response.json()
        assert body["section_index"] == 0
        assert body["errors"]["name"]["code"] == "required"

    async def test_walk_and_submit(self, async_client, owner_headers, created_survey):
        sid = (await start(async_client, created_survey["id"]))["session_id"]
        assert (await answer(async_client, sid, "name", "Ada")).status_code == 200
        body = (await async_client.post(f"/api/sessions/{sid}/navigate", json={"target": 1})).json()
        assert body["section_index"] == 1
        assert body["is_last_section"] is True

        await answer(async_client, sid, "age", 36)
        response = await async_client.post(f"/api/sessions/{sid}/submit")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "submitted"
        assert body["response"]["answers"] == {"name": "Ada", "age": "36"}
        assert body["response"]["score"] is None

        stored = await async_client.get(f"/api/forms/{created_survey['id']}/responses", headers=owner_headers)
        assert [r["id"] for r in stored.json()] == [body["response"]["id"]]

    async def test_submit_from_first_section_conflicts(self, async_client, created_survey):
        sid = (await start(async_client, created_survey["id"]))["session_id"]
        response = await async_client.post(f"/api/sessions/{sid}/submit")
        assert response.status_code == 409

    async def test_out_of_range_navigation(self, async_client, created_survey):
        sid = (await start(async_client, created_survey["id"]))["session_id"]
        response = await async_client.post(f"/api/sessions/{sid}/navigate", json={"target": 5})
        assert response.status_code == 409

    async def test_bad_answer_shape(self, async_client, created_survey):
        sid = (await start(async_client, created_survey["id"]))["session_id"]
        assert (await answer(async_client, sid, "name", ["a", "b"])).status_code == 422
        assert (await answer(async_client, sid, "nope", "x")).status_code == 422

    async def test_clear_and_reset(self, async_client, created_survey):
        sid = (await start(async_client, created_survey["id"]))["session_id"]
        await answer(async_client, sid, "name", "Ada")
        await async_client.post(f"/api/sessions/{sid}/navigate", json={"target": 1})
        await answer(async_client, sid, "age", "2")

        body = (await async_client.delete(f"/api/sessions/{sid}/answers")).json()
        assert body["answers"] == {}
        assert body["section_index"] == 1

        body = (await async_client.post(f"/api/sessions/{sid}/reset")).json()
        assert body["section_index"] == 0

    async def test_discard(self, async_client, created_survey):
        sid = (await start(async_client, created_survey["id"]))["session_id"]
        assert (await async_client.delete(f"/api/sessions/{sid}")).status_code == 200
        assert (await async_client.get(f"/api/sessions/{sid}")).status_code == 404


class TestQuiz:
    async def test_scored_submission_with_review(self, async_client, owner_headers, created_quiz):
        sid = (await start(async_client, created_quiz["id"]))["session_id"]
        await answer(async_client, sid, "capital", "Paris")
        await async_client.post(f"/api/sessions/{sid}/answers/primes/toggle", json={"option": "3"})
        await async_client.post(f"/api/sessions/{sid}/answers/primes/toggle", json={"option": "2"})

        body = (await async_client.post(f"/api/sessions/{sid}/submit")).json()
        assert body["response"]["score"] == 100
        assert body["response"]["answers"]["primes"] == ["2", "3"]
        assert [r["correct"] for r in body["review"]] == [True, True]

        analytics = await async_client.get(f"/api/forms/{created_quiz['id']}/analytics", headers=owner_headers)
        assert analytics.status_code == 200
        assert analytics.json()["average_score"] == 100

        export = await async_client.get(f"/api/forms/{created_quiz['id']}/responses.csv", headers=owner_headers)
        assert export.status_code == 200
        assert export.headers["content-type"].startswith("text/csv")
        assert "2; 3" in export.text

    async def test_failed_store_write_can_be_retried(self, async_client, created_quiz, mocker):
        sid = (await start(async_client, created_quiz["id"]))["session_id"]
        await answer(async_client, sid, "capital", "Paris")
        await answer(async_client, sid, "primes", ["3", "2"])

        original = FormStore.create_response
        calls = []

        async def fail_once(self, response):
            calls.append(response)
            if len(calls) == 1:
                raise ConnectionError("database went away")
            return await original(self, response)

        mocker.patch.object(FormStore, "create_response", fail_once)

        response = await async_client.post(f"/api/sessions/{sid}/submit")
        assert response.status_code == 503
        body = (await async_client.get(f"/api/sessions/{sid}")).json()
        assert body["status"] == "editing"
        assert body["answers"] == {"capital": "Paris", "primes": ["2", "3"]}

        response = await async_client.post(f"/api/sessions/{sid}/submit")
        assert response.status_code == 200
        assert response.json()["response"]["score"] == 100
        assert calls[0] == calls[1]

    async def test_store_dedupes_repeated_submission(self, async_client, owner_headers, created_quiz):
        sid = (await start(async_client, created_quiz["id"]))["session_id"]
        await answer(async_client, sid, "capital", "Rome")
        first = (await async_client.post(f"/api/sessions/{sid}/submit")).json()["response"]

        again = await store.create_response(
            ResponseInput(
                form_id=created_quiz["id"],
                answers=first["answers"],
                score=first["score"],
                idempotency_key=first["idempotencyKey"],
            )
        )
        assert again.id == first["id"]
        listed = await async_client.get(f"/api/forms/{created_quiz['id']}/responses", headers=owner_headers)
        assert len(listed.json()) == 1


class TestFormDeleted:
    async def test_submit_after_delete_is_not_stored(self, async_client, owner_headers, created_quiz):
        sid = (await start(async_client, created_quiz["id"]))["session_id"]
        await answer(async_client, sid, "capital", "Paris")
        deleted = await async_client.delete(f"/api/forms/{created_quiz['id']}", headers=owner_headers)
        assert deleted.status_code == 200

        response = await async_client.post(f"/api/sessions/{sid}/submit")
        assert response.status_code == 404
        assert await store.list_responses_by_form(created_quiz["id"]) == []

    async def test_discard_while_submitting_conflicts(self, async_client, created_quiz):
        sid = (await start(async_client, created_quiz["id"]))["session_id"]
        _, state = registry.get(sid)
        state.status = SessionStatus.SUBMITTING
        response = await async_client.delete(f"/api/sessions/{sid}")
        assert response.status_code == 409
        state.status = SessionStatus.EDITING


class TestChoiceOptions:
    async def test_answer_outside_options(self, async_client, created_quiz):
        sid = (await start(async_client, created_quiz["id"]))["session_id"]
        response = await answer(async_client, sid, "capital", "Berlin")
        assert response.status_code == 422
        body = (await async_client.get(f"/api/sessions/{sid}")).json()
        assert body["answers"] == {}
