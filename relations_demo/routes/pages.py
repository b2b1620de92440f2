import logging
from pathlib import Path
from typing import Callable, Type

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..database import get_db
from ..joiner import DanglingReferenceError
from ..results import WriteResult

logger = logging.getLogger(__name__)

router = APIRouter(tags=["fluencies"])

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

DANGLING_DETAIL = "Fluency data references a missing user or language."


def render(request: Request, template: str, context: dict, status_code: int = 200) -> HTMLResponse:
    base_context = {"app_name": request.app.state.settings.app_name}
    base_context.update(context)
    return templates.TemplateResponse(request, template, base_context, status_code=status_code)


def _load_overview(db: Session) -> crud.Overview:
    try:
        return crud.load_overview(db)
    except DanglingReferenceError as exc:
        logger.error("Cannot render fluencies: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=DANGLING_DETAIL,
        )


def _submit(
    db: Session,
    schema: Type[BaseModel],
    payload: dict,
    write: Callable[[Session, BaseModel], WriteResult],
) -> RedirectResponse:
    """Validate a form payload, run the write and redirect home on success."""
    try:
        data = schema(**payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=[error.model_dump() for error in schemas.format_errors(exc)],
        )

    result = write(db, data)
    if not result.ok:
        raise HTTPException(
            status_code=(
                status.HTTP_500_INTERNAL_SERVER_ERROR
                if result.transient
                else status.HTTP_400_BAD_REQUEST
            ),
            detail=result.reason,
        )
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/", response_class=HTMLResponse)
def index(request: Request, db: Session = Depends(get_db)):
    overview = _load_overview(db)
    return render(
        request,
        "index.html",
        {
            "people": overview.people,
            "languages": overview.languages,
            "fluencies": overview.fluencies,
            "page_title": "Fluencies",
        },
    )


@router.get("/api/overview", response_model=schemas.OverviewOut)
def overview(db: Session = Depends(get_db)):
    data = _load_overview(db)
    return schemas.OverviewOut(
        people=[schemas.EntityOut(id=e.id, name=e.display_name) for e in data.people],
        languages=[schemas.EntityOut(id=e.id, name=e.display_name) for e in data.languages],
        fluencies=[
            schemas.JoinedRowOut(
                user_id=row.left_id,
                user_name=row.left_name,
                language_id=row.right_id,
                language_name=row.right_name,
                level=row.payload,
            )
            for row in data.fluencies
        ],
    )


@router.post("/user")
async def create_user(request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    return _submit(
        db,
        schemas.UserCreate,
        {"user_name": form.get("username") or ""},
        crud.create_user,
    )


@router.post("/language")
async def create_language(request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    return _submit(
        db,
        schemas.LanguageCreate,
        {"language_name": form.get("language") or ""},
        crud.create_language,
    )


@router.post("/fluency")
async def create_fluency(request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    return _submit(
        db,
        schemas.FluencyCreate,
        {
            "level": form.get("fluency") or "",
            "user_id": form.get("userId"),
            "language_id": form.get("languageId"),
        },
        crud.create_fluency,
    )
