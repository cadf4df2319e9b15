"""Application controller - per-request context and cross-cutting policies.

Every HTML/JSON action depends on `get_controller`, which runs the
before-actions in order:

1. CSRF verification for write requests
2. set_globals: community from Host, signed-in user, cached reference data
3. check_if_warning_or_suspension_pending
4. stop_the_awful_troll

A before-action that renders or redirects sets `performed`; the chain stops
there and the response is returned through `HaltRequest`.
"""

import logging
import random
from typing import Annotated, Any

from fastapi import Depends, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.abuse import (
    blocked_write_comment,
    extract_ip,
    filter_params,
    full_path,
    request_params,
    wants_json,
)
from backend.app.api.auth import get_signed_in_user_id, has_privilege, load_signed_in_user
from backend.app.api.csrf import verify_authenticity_token
from backend.app.api.errors import USEFUL_ERROR_MESSAGES, HaltRequest
from backend.app.api.views import render_view
from backend.app.cache import get_cache_store
from backend.app.config import Settings, get_settings
from backend.app.db.context import RequestContext
from backend.app.db.engine import get_session
from backend.app.db.models import AuditLog, Privilege
from backend.app.db.queries import (
    count_unhandled_flags,
    select_active_blocks,
    select_pending_warnings,
)
from backend.app.db.repositories import CacheStore
from backend.app.models.users import SignedInUser
from backend.app.reference.data import ReferenceData, utcnow
from backend.app.utils.logging import StructuredRequestLogger
from backend.app.utils.metrics import PrometheusRequestMetrics

logger = logging.getLogger(__name__)

DEFAULT_CONTROLLER = "application"

# Controllers reachable while a moderation warning is pending
AUTH_CONTROLLERS = frozenset({"sessions", "registrations", "passwords", "confirmations", "unlocks"})
WARNING_EXEMPT_CONTROLLERS = frozenset({"custom_sessions", "mod_warning", "errors"})

CURRENT_WARNING_PATH = "/warning"


class ApplicationController:
    """Base controller state shared by every action of a request."""

    def __init__(
        self,
        request: Request,
        session: AsyncSession,
        cache: CacheStore,
        settings: Settings,
        signed_in_user_id: int | None = None,
        metrics: PrometheusRequestMetrics | None = None,
        request_logger: StructuredRequestLogger | None = None,
    ) -> None:
        self.request = request
        self.session = session
        self.cache = cache
        self.settings = settings
        self.metrics = metrics or PrometheusRequestMetrics()
        self.request_logger = request_logger or StructuredRequestLogger()
        self.reference = ReferenceData(session, cache, settings, self.metrics)

        self._signed_in_user_id = signed_in_user_id
        self.ctx = RequestContext()
        self.performed: Response | None = None
        self.privilege: Privilege | None = None

        request.state.ctx = self.ctx

    # -- request state -------------------------------------------------------

    @property
    def controller_name(self) -> str:
        """Name of the controller owning the matched route (its first tag)."""
        route = self.request.scope.get("route")
        tags = getattr(route, "tags", None)
        return str(tags[0]) if tags else DEFAULT_CONTROLLER

    @property
    def current_user(self) -> SignedInUser | None:
        return self.ctx.user

    @property
    def user_signed_in(self) -> bool:
        return self.ctx.user is not None

    # -- responses -----------------------------------------------------------

    def render(
        self,
        name: str,
        *,
        layout: str = "application",
        status_code: int = status.HTTP_200_OK,
        context: dict[str, Any] | None = None,
    ) -> Response:
        """Render an HTML view and mark the request as performed."""
        self.performed = render_view(
            self.request,
            self.settings,
            name,
            layout=layout,
            status_code=status_code,
            context=context,
        )
        return self.performed

    def render_plain(self, body: str, status_code: int) -> Response:
        self.performed = PlainTextResponse(body, status_code=status_code)
        return self.performed

    def render_json(self, body: dict[str, Any], status_code: int) -> Response:
        self.performed = JSONResponse(body, status_code=status_code)
        return self.performed

    def redirect_to(self, url: str) -> Response:
        self.performed = RedirectResponse(url, status_code=status.HTTP_302_FOUND)
        return self.performed

    def not_found(self) -> Response:
        return self.render(
            "errors/not_found", layout="without_sidebar", status_code=status.HTTP_404_NOT_FOUND
        )

    # -- lifecycle -----------------------------------------------------------

    async def run_before_actions(self) -> None:
        """Run the before-actions in order, halting on the first response.

        Raises:
            InvalidAuthenticityToken: On a forged write request
            HaltRequest: When a before-action rendered or redirected
        """
        await verify_authenticity_token(self.request, self.settings)

        for action in (
            self.set_globals,
            self.check_if_warning_or_suspension_pending,
            self.stop_the_awful_troll,
        ):
            await action()
            if self.performed is not None:
                raise HaltRequest(self.performed)

    async def set_globals(self) -> None:
        if not await self.setup_request_context():
            return
        await self.setup_user()

        await self.pull_pinned_links_and_hot_questions()
        await self.pull_categories()

        user = self.current_user
        if user is not None and (user.is_moderator or user.is_admin):
            result = await self.session.execute(count_unhandled_flags(self.ctx.community_id))
            self.ctx.open_flags = result.scalar_one()

        self.ctx.first_visit_notice = (
            not self.user_signed_in and self.request.cookies.get("dismiss_fvn") != "true"
        )

    async def setup_request_context(self) -> bool:
        """Resolve the community from the Host header; 422 when none matches."""
        self.ctx.clear()

        # Port included so several localhost instances can run side by side
        host_name = self.request.headers.get("host", "")
        self.ctx.community = await self.reference.community_for_host(host_name)

        self.request_logger.log_host(host_name, self.ctx.community)
        if self.ctx.community is None:
            self.metrics.inc_resolution_failure()
            self.render_plain(
                f"No community record matching Host='{host_name}'",
                status.HTTP_422_UNPROCESSABLE_ENTITY,
            )
            return False

        return True

    async def setup_user(self) -> None:
        if self._signed_in_user_id is not None:
            self.ctx.user = await load_signed_in_user(
                self.session, self._signed_in_user_id, self.ctx.community_id
            )
        self.request_logger.log_user(self.ctx.user)

    async def pull_pinned_links_and_hot_questions(self) -> None:
        community_id = self.ctx.community_id
        self.ctx.pinned_links = await self.reference.pinned_links(community_id)
        self.ctx.hot_questions = await self.reference.hot_questions(community_id)

    async def pull_categories(self) -> None:
        self.ctx.header_categories = await self.reference.header_categories(self.ctx.community_id)

    async def check_if_warning_or_suspension_pending(self) -> None:
        user = self.current_user
        if user is None or user.community_user_id is None:
            return

        result = await self.session.execute(
            select_pending_warnings(user.community_user_id, utcnow()).limit(1)
        )
        if result.first() is None:
            return

        name = self.controller_name
        if name in AUTH_CONTROLLERS or name in WARNING_EXEMPT_CONTROLLERS:
            return

        self.request.session.pop("flash", None)
        self.metrics.inc_warning_redirect()
        self.redirect_to(CURRENT_WARNING_PATH)

    async def stop_the_awful_troll(self) -> bool:
        """Reject write requests from a blocked IP, email or email domain."""
        if not self.settings.abuse_blocking_enabled:
            return True

        # Only stop trolls doing things, not looking at them
        if self.request.method.upper() == "GET":
            return True

        # Account creation is screened separately
        user = self.current_user
        if user is None:
            return True

        ip = extract_ip(self.request)
        result = await self.session.execute(
            select_active_blocks(ip, user.email, user.email_domain, utcnow())
        )
        blocks = result.scalars().all()
        if not blocks:
            return True

        first_block = blocks[0]
        method = self.request.method.upper()
        path = full_path(self.request)
        params = filter_params(await request_params(self.request), self.settings.filter_parameters)

        self.session.add(
            AuditLog(
                community_id=self.ctx.community_id,
                log_type="block_log",
                event_type="write_request_blocked",
                related_type="BlockedItem",
                related_id=first_block.id,
                user_id=user.id,
                comment=blocked_write_comment(user, ip, method, path, params),
            )
        )
        await self.session.commit()

        self.request_logger.log_blocked_write(user, ip, method, path, first_block.id)
        self.metrics.inc_blocked_write(first_block.item_type)

        if wants_json(self.request):
            self.render_json(
                {"status": "failed", "message": random.choice(USEFUL_ERROR_MESSAGES)},
                status.HTTP_418_IM_A_TEAPOT,
            )
        else:
            self.render(
                "errors/stat", layout="without_sidebar", status_code=status.HTTP_418_IM_A_TEAPOT
            )
        return False

    # -- authorization helpers -----------------------------------------------

    def verify_moderator(self) -> bool:
        user = self.current_user
        if user is None or not (user.is_moderator or user.is_admin):
            self.not_found()
            return False
        return True

    def verify_admin(self) -> bool:
        user = self.current_user
        if user is None or not user.is_admin:
            self.not_found()
            return False
        return True

    def verify_global_admin(self) -> bool:
        user = self.current_user
        if user is None or not user.is_global_admin:
            self.not_found()
            return False
        return True

    def verify_global_moderator(self) -> bool:
        user = self.current_user
        if user is None or not (user.is_global_moderator or user.is_global_admin):
            self.not_found()
            return False
        return True

    async def check_your_privilege(
        self, name: str, post: Any = None, render_error: bool = True
    ) -> bool:
        """Whether the current user holds a named privilege.

        Owning `post` counts as holding the privilege for that post.

        Args:
            name: Privilege name
            post: Optional post the action targets (anything with `user_id`)
            render_error: Render the 401 forbidden view on failure

        Returns:
            True if allowed
        """
        result = await self.session.execute(select(Privilege).where(Privilege.name == name))
        self.privilege = result.scalar_one_or_none()

        user = self.current_user
        if user is not None:
            if self.privilege is not None and await has_privilege(
                self.session, user, self.privilege.id
            ):
                return True
            if self.privilege is None and (user.is_moderator or user.is_admin):
                return True
            if post is not None and getattr(post, "user_id", None) == user.id:
                return True

        if render_error:
            self.render(
                "errors/forbidden",
                layout="without_sidebar",
                status_code=status.HTTP_401_UNAUTHORIZED,
                context={"privilege": self.privilege, "privilege_name": name},
            )
        return False


async def get_controller(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_session)],
    cache: Annotated[CacheStore, Depends(get_cache_store)],
    settings: Annotated[Settings, Depends(get_settings)],
    user_id: Annotated[int | None, Depends(get_signed_in_user_id)],
) -> ApplicationController:
    """FastAPI dependency building the controller and running its before-actions."""
    controller = ApplicationController(request, session, cache, settings, user_id)
    await controller.run_before_actions()
    return controller
