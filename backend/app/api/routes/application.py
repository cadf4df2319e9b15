"""Application actions - upload redirect and community dashboard."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy import select

from backend.app.api.controller import ApplicationController, get_controller
from backend.app.config import Settings
from backend.app.db.models import Community

router = APIRouter(tags=["application"])


def upload_remote_url(settings: Settings, key: str) -> str:
    """Public URL of an uploaded blob."""
    return f"https://s3.amazonaws.com/{settings.s3_bucket}/{key}"


@router.get("/uploads/{key}")
async def upload(
    key: str,
    controller: Annotated[ApplicationController, Depends(get_controller)],
) -> Response:
    """Redirect to the stored upload for `key`."""
    return controller.redirect_to(upload_remote_url(controller.settings, key))


@router.get("/dashboard")
async def dashboard(
    controller: Annotated[ApplicationController, Depends(get_controller)],
) -> Response:
    """List every community on this deployment."""
    result = await controller.session.execute(select(Community).order_by(Community.id))
    communities = result.scalars().all()

    return controller.render(
        "application/dashboard",
        layout="without_sidebar",
        context={"communities": communities},
    )
