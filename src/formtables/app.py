from __future__ import annotations

from fastapi import FastAPI
from fastapi.templating import Jinja2Templates

from formtables.client import Forms
from formtables.config import BASE_DIR, Settings
from formtables.protocols import TableBackend
from formtables.routes.pages import router as pages_router
from formtables.storage import init_backend


def create_app(settings: Settings | None = None, backend: TableBackend | None = None) -> FastAPI:
    settings = settings or Settings()
    backend = backend or init_backend(settings)
    forms = Forms.init(settings.forms_dir, backend)

    app = FastAPI(
        openapi_tags=[
            {"name": "forms", "description": "Form pages (HTML)"},
            {"name": "system", "description": "System"},
        ]
    )

    app.state.settings = settings
    app.state.backend = backend
    app.state.forms = forms

    templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
    app.state.templates = templates

    app.include_router(pages_router)

    return app
