"""Pending moderation warning page."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from backend.app.api.controller import ApplicationController, get_controller
from backend.app.db.queries import select_pending_warnings
from backend.app.reference.data import utcnow

router = APIRouter(tags=["mod_warning"])


@router.get("/warning")
async def current(
    controller: Annotated[ApplicationController, Depends(get_controller)],
) -> Response:
    """Show the signed-in user's pending warning, or 404 when there is none."""
    user = controller.current_user
    if user is None or user.community_user_id is None:
        return controller.not_found()

    result = await controller.session.execute(
        select_pending_warnings(user.community_user_id, utcnow()).limit(1)
    )
    warning = result.scalar_one_or_none()
    if warning is None:
        return controller.not_found()

    return controller.render(
        "mod_warning/current", layout="without_sidebar", context={"warning": warning}
    )
