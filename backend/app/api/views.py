"""HTML view rendering."""

from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from backend.app.api.csrf import csrf_token_for, set_csrf_cookie
from backend.app.config import Settings

TEMPLATES_DIR = Path(__file__).parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def render_view(
    request: Request,
    settings: Settings,
    name: str,
    *,
    layout: str = "application",
    status_code: int = 200,
    context: dict[str, Any] | None = None,
) -> HTMLResponse:
    """Render `<name>.html` extending `layouts/<layout>.html`.

    Args:
        request: Current request
        settings: Application settings
        name: View name, e.g. "errors/not_found"
        layout: Layout name
        status_code: HTTP status
        context: Extra template variables

    Returns:
        Rendered HTML response with the CSRF cookie ensured
    """
    template_context: dict[str, Any] = {
        "layout": f"layouts/{layout}.html",
        "csrf_token": csrf_token_for(request, settings),
        "ctx": getattr(request.state, "ctx", None),
    }
    template_context.update(context or {})

    response = templates.TemplateResponse(
        request=request,
        name=f"{name}.html",
        context=template_context,
        status_code=status_code,
    )
    set_csrf_cookie(request, response, settings)
    return response
