import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from formapi.analytics import analyze, responses_csv
from formapi.engine.view import render_form
from formapi.exceptions import NotFoundError
from formapi.models.analytics import FormAnalytics
from formapi.models.form import FormDefinition, FormIn, FormSummary
from formapi.models.response import Response
from formapi.models.session import PublicForm
from formapi.models.user import Owner
from formapi.security import get_current_owner
from formapi.store import store

logger = logging.getLogger(__name__)
router = APIRouter()


async def get_owned_form(fid: str, current_owner: Owner) -> FormDefinition:
    try:
        form = await store.get_form(fid)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail="Form not found") from e

    if form.owner_id != current_owner.id:
        logger.debug(f"Owner {current_owner.id} denied access to form {fid}")
        raise HTTPException(status_code=403, detail="Forbidden")
    return form


@router.post("", response_model=FormDefinition, status_code=201)
async def create_form(form: FormIn, current_owner: Annotated[Owner, Depends(get_current_owner)]):
    return await store.create_form(form, current_owner)


@router.get("", response_model=List[FormSummary], status_code=200)
async def list_forms(current_owner: Annotated[Owner, Depends(get_current_owner)]):
    return await store.list_forms_by_owner(current_owner.id)


@router.get("/{fid}", response_model=FormDefinition, status_code=200)
async def get_form(fid: str, current_owner: Annotated[Owner, Depends(get_current_owner)]):
    return await get_owned_form(fid, current_owner)


@router.put("/{fid}", response_model=FormDefinition, status_code=200)
async def update_form(fid: str, form: FormIn, current_owner: Annotated[Owner, Depends(get_current_owner)]):
    await get_owned_form(fid, current_owner)
    return await store.update_form(fid, form)


@router.delete("/{fid}", status_code=200)
async def delete_form(fid: str, current_owner: Annotated[Owner, Depends(get_current_owner)]):
    await get_owned_form(fid, current_owner)
    deleted = await store.delete_form(fid)
    return {"message": "Form deleted successfully", "form_id": fid, "deleted_responses": deleted}


@router.get("/{fid}/responses", response_model=List[Response], status_code=200)
async def list_responses(fid: str, current_owner: Annotated[Owner, Depends(get_current_owner)]):
    await get_owned_form(fid, current_owner)
    return await store.list_responses_by_form(fid)


@router.get("/{fid}/responses.csv", response_class=PlainTextResponse, status_code=200)
async def export_responses(fid: str, current_owner: Annotated[Owner, Depends(get_current_owner)]):
    form = await get_owned_form(fid, current_owner)
    responses = await store.list_responses_by_form(fid)
    return PlainTextResponse(
        responses_csv(form, responses),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{fid}-responses.csv"'},
    )


@router.get("/{fid}/analytics", response_model=FormAnalytics, status_code=200)
async def get_analytics(fid: str, current_owner: Annotated[Owner, Depends(get_current_owner)]):
    form = await get_owned_form(fid, current_owner)
    responses = await store.list_responses_by_form(fid)
    return analyze(form, responses)


@router.get("/{fid}/public", response_model=PublicForm, status_code=200)
async def get_public_form(fid: str):
    try:
        form = await store.load_form(fid)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail="Form not found") from e
    return render_form(form)
