from contextlib import asynccontextmanager
from urllib.parse import urlencode

from fastapi import FastAPI, Request, status
from fastapi.responses import RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from blog.config import settings
from blog.database import init_db
from blog.dependencies import LoginRequired
from blog.log import configure_logging
from blog.middleware import TimingMiddleware
from blog.routers import account, articles, users

configure_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    if settings.CREATE_SCHEMA:
        await init_db()
    yield


app = FastAPI(
    title="Blog Administration",
    description="Article and user administration for a small blog",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    session_cookie=settings.SESSION_COOKIE,
    same_site="lax",
    https_only=settings.APP_ENV == "production",
)


@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired):
    query = urlencode({"ReturnUrl": exc.return_url})
    return RedirectResponse(f"/Account/Login?{query}", status_code=status.HTTP_302_FOUND)


# Routers
app.include_router(articles.router)
app.include_router(users.router)
app.include_router(account.router)


@app.get("/", include_in_schema=False)
async def home():
    return RedirectResponse("/Article/List", status_code=status.HTTP_302_FOUND)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
