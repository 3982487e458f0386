# storefront/views_menu.py
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlmodel import Session

from .db import get_session_dep
from .menu import list_menu

router = APIRouter(prefix="/api", tags=["menu"])

SessionDep = Annotated[Session, Depends(get_session_dep)]


@router.get("/menu")
def api_menu(session: SessionDep):
    return JSONResponse({"ok": True, "products": list_menu(session)})
