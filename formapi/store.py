"""Persistence for forms and responses.

This is the whole contract the respondent engine relies on (``load_form`` and
``create_response``) plus the builder and dashboard calls. Responses are
written once and never updated.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

import sqlalchemy

from formapi.database import database, form_table, response_table
from formapi.exceptions import NotFoundError
from formapi.models.form import FormDefinition, FormIn, FormSummary
from formapi.models.response import Response, ResponseInput
from formapi.models.user import Owner

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _form_values(form: FormIn) -> dict:
    return {
        "title": form.title,
        "description": form.description,
        "sections": [s.model_dump(mode="json", by_alias=True) for s in form.sections],
        "is_test_mode": form.is_test_mode,
        "is_published": form.is_published,
        "theme": form.theme.model_dump(mode="json"),
    }


def _to_form(row) -> FormDefinition:
    return FormDefinition(
        id=row.id,
        owner_id=row.owner_id,
        owner_email=row.owner_email,
        title=row.title,
        description=row.description or "",
        sections=row.sections,
        is_test_mode=row.is_test_mode,
        is_published=row.is_published,
        theme=row.theme,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_response(row) -> Response:
    return Response(
        id=row.id,
        form_id=row.form_id,
        answers=row.answers,
        score=row.score,
        submitted_at=row.submitted_at,
        idempotency_key=row.idempotency_key,
    )


class FormStore:
    async def get_form(self, form_id: str) -> FormDefinition:
        query = form_table.select().where(form_table.c.id == form_id)
        row = await database.fetch_one(query)
        if not row:
            logger.debug(f"Form {form_id} not found")
            raise NotFoundError(f"Form {form_id} not found")
        return _to_form(row)

    async def load_form(self, form_id: str) -> FormDefinition:
        """Form as respondents see it; unpublished forms do not exist for them."""
        form = await self.get_form(form_id)
        if not form.is_published:
            logger.debug(f"Form {form_id} is not published")
            raise NotFoundError(f"Form {form_id} not found")
        return form

    async def create_form(self, form: FormIn, owner: Owner) -> FormDefinition:
        form_id = uuid4().hex
        now = utcnow()
        query = form_table.insert().values(
            id=form_id,
            owner_id=owner.id,
            owner_email=owner.email,
            created_at=now,
            updated_at=now,
            **_form_values(form),
        )
        await database.execute(query)
        logger.info(f"Created form {form_id}", extra={"email": owner.email or ""})
        return await self.get_form(form_id)

    async def update_form(self, form_id: str, form: FormIn) -> FormDefinition:
        query = (
            form_table.update()
            .where(form_table.c.id == form_id)
            .values(updated_at=utcnow(), **_form_values(form))
        )
        await database.execute(query)
        return await self.get_form(form_id)

    async def delete_form(self, form_id: str) -> int:
        """Delete a form and its responses; returns how many responses went with it."""
        async with database.transaction():
            count = await database.fetch_val(
                sqlalchemy.select(sqlalchemy.func.count())
                .select_from(response_table)
                .where(response_table.c.form_id == form_id)
            )
            await database.execute(response_table.delete().where(response_table.c.form_id == form_id))
            await database.execute(form_table.delete().where(form_table.c.id == form_id))
        logger.info(f"Deleted form {form_id} with {count} responses")
        return count

    async def list_forms_by_owner(self, owner_id: str) -> List[FormSummary]:
        response_count = (
            sqlalchemy.select(sqlalchemy.func.count())
            .select_from(response_table)
            .where(response_table.c.form_id == form_table.c.id)
            .scalar_subquery()
            .label("response_count")
        )
        query = (
            sqlalchemy.select(
                form_table.c.id,
                form_table.c.title,
                form_table.c.description,
                form_table.c.is_published,
                form_table.c.is_test_mode,
                form_table.c.updated_at,
                response_count,
            )
            .where(form_table.c.owner_id == owner_id)
            .order_by(form_table.c.updated_at.desc())
        )
        rows = await database.fetch_all(query)
        return [
            FormSummary(
                id=row.id,
                title=row.title,
                description=row.description or "",
                is_published=row.is_published,
                is_test_mode=row.is_test_mode,
                updated_at=row.updated_at,
                response_count=row.response_count,
            )
            for row in rows
        ]

    async def _response_by_key(self, key: str) -> Optional[Response]:
        query = response_table.select().where(response_table.c.idempotency_key == key)
        row = await database.fetch_one(query)
        return _to_response(row) if row else None

    async def create_response(self, response: ResponseInput) -> Response:
        """Store one submission. A repeated idempotency key returns the response already stored."""
        async with database.transaction():
            if response.idempotency_key:
                existing = await self._response_by_key(response.idempotency_key)
                if existing:
                    logger.info(f"Response {existing.id} already stored for this submission")
                    return existing

            form_exists = await database.fetch_val(
                sqlalchemy.select(form_table.c.id).where(form_table.c.id == response.form_id)
            )
            if form_exists is None:
                raise NotFoundError(f"Form {response.form_id} not found")

            response_id = uuid4().hex
            query = response_table.insert().values(
                id=response_id,
                form_id=response.form_id,
                answers=response.answers,
                score=response.score,
                submitted_at=utcnow(),
                idempotency_key=response.idempotency_key,
            )
            await database.execute(query)
            row = await database.fetch_one(response_table.select().where(response_table.c.id == response_id))
        return _to_response(row)

    async def list_responses_by_form(self, form_id: str) -> List[Response]:
        query = (
            response_table.select()
            .where(response_table.c.form_id == form_id)
            .order_by(response_table.c.submitted_at.desc())
        )
        rows = await database.fetch_all(query)
        return [_to_response(row) for row in rows]


store = FormStore()
