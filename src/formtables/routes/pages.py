from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse, PlainTextResponse

from formtables.errors import (
    BackendError,
    DescriptorDecodeError,
    FormNotFoundError,
    RequiredFieldMissingError,
    RowNotFoundError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _not_found(exc: Exception) -> HTTPException:
    return HTTPException(status_code=404, detail=str(exc))


def _backend_failure(exc: BackendError) -> HTTPException:
    logger.exception("Backend call failed: %s", exc.operation)
    return HTTPException(status_code=502, detail=str(exc))


def _bad_descriptors(exc: DescriptorDecodeError) -> HTTPException:
    logger.error("%s", exc)
    return HTTPException(status_code=500, detail=str(exc))


@router.get("/", response_class=HTMLResponse, tags=["forms"])
async def home(request: Request) -> HTMLResponse:
    forms = request.app.state.forms
    templates = request.app.state.templates
    return templates.TemplateResponse(
        request,
        "home.html",
        {"forms": forms.list_forms()},
    )


@router.get("/insert/{form_name}", response_class=HTMLResponse, tags=["forms"])
async def new_row(request: Request, form_name: str) -> HTMLResponse:
    forms = request.app.state.forms
    templates = request.app.state.templates
    try:
        form_html = forms.new_form_html(form_name)
    except FormNotFoundError as exc:
        raise _not_found(exc) from exc
    except DescriptorDecodeError as exc:
        raise _bad_descriptors(exc) from exc
    return templates.TemplateResponse(
        request,
        "insert.html",
        {"form_name": form_name, "form_html": form_html, "errors": []},
    )


@router.post("/insert/{form_name}", tags=["forms"])
async def insert_row(request: Request, form_name: str):
    forms = request.app.state.forms
    templates = request.app.state.templates
    form_data = await request.form()
    try:
        row_id = forms.insert(form_name, form_data)
    except FormNotFoundError as exc:
        raise _not_found(exc) from exc
    except DescriptorDecodeError as exc:
        raise _bad_descriptors(exc) from exc
    except RequiredFieldMissingError as exc:
        return templates.TemplateResponse(
            request,
            "insert.html",
            {
                "form_name": form_name,
                "form_html": forms.new_form_html(form_name),
                "errors": [str(exc)],
            },
            status_code=400,
        )
    except BackendError as exc:
        raise _backend_failure(exc) from exc
    return PlainTextResponse(f"done. id #{row_id}")


@router.get("/edit/{form_name}/{row_id}", response_class=HTMLResponse, tags=["forms"])
async def edit_row(request: Request, form_name: str, row_id: int) -> HTMLResponse:
    forms = request.app.state.forms
    templates = request.app.state.templates
    try:
        form_html = forms.edit_form_html(form_name, row_id)
    except (FormNotFoundError, RowNotFoundError) as exc:
        raise _not_found(exc) from exc
    except DescriptorDecodeError as exc:
        raise _bad_descriptors(exc) from exc
    except BackendError as exc:
        raise _backend_failure(exc) from exc
    return templates.TemplateResponse(
        request,
        "edit.html",
        {"form_name": form_name, "row_id": row_id, "form_html": form_html, "errors": []},
    )


@router.post("/edit/{form_name}/{row_id}", tags=["forms"])
async def update_row(request: Request, form_name: str, row_id: int):
    forms = request.app.state.forms
    templates = request.app.state.templates
    form_data = await request.form()
    try:
        forms.update(form_name, row_id, form_data)
    except (FormNotFoundError, RowNotFoundError) as exc:
        raise _not_found(exc) from exc
    except DescriptorDecodeError as exc:
        raise _bad_descriptors(exc) from exc
    except RequiredFieldMissingError as exc:
        missing = exc
    except BackendError as exc:
        raise _backend_failure(exc) from exc
    else:
        return PlainTextResponse("updated.")

    try:
        form_html = forms.edit_form_html(form_name, row_id)
    except RowNotFoundError as exc:
        raise _not_found(exc) from exc
    except BackendError as exc:
        raise _backend_failure(exc) from exc
    return templates.TemplateResponse(
        request,
        "edit.html",
        {
            "form_name": form_name,
            "row_id": row_id,
            "form_html": form_html,
            "errors": [str(missing)],
        },
        status_code=400,
    )


@router.get("/healthz", tags=["system"])
async def healthz() -> dict[str, str]:
    return {"status": "ok"}
