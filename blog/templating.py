from pathlib import Path

from fastapi.templating import Jinja2Templates
from starlette.requests import Request

from blog.config import settings
from blog.dependencies import SESSION_USERNAME
from blog.security import get_csrf_token

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def render(request: Request, name: str, model=None, status_code: int = 200, **bag):
    """
    Render template *name* with *model* and an optional announcement bag.

    Every view also gets the anti-forgery token and the signed-in username
    so forms and the layout need nothing else from the handler.
    """
    context = {
        "model": model,
        "csrf_field": settings.CSRF_FIELD_NAME,
        "csrf_token": get_csrf_token(request),
        "current_username": request.session.get(SESSION_USERNAME),
        "errors": {},
        **bag,
    }
    return templates.TemplateResponse(request, name, context, status_code=status_code)
