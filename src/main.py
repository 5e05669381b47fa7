"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from src.api import auth
from src.api.dependencies import enforce_access
from src.config import get_settings
from src.services.exceptions import (
    INVALID_CREDENTIALS_MESSAGE,
    InvalidCredentialsError,
    TooManyAttemptsError,
    Unauthenticated,
    ValidationError,
)
from src.services.session import AuthContext

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    # Startup: Initialize application resources here
    yield
    # Shutdown: Clean up resources here


app = FastAPI(
    title="Sign-in API",
    description="Registration, password storage and session-based login",
    version="0.1.0",
    lifespan=lifespan,
    # Every route is protected unless the access gate lists it as public
    dependencies=[Depends(enforce_access)],
)

# CORS middleware for development
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://localhost:5173",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.middleware("http")
async def auth_context_middleware(request: Request, call_next):
    """Give each request its own auth context and write back its cookie changes."""
    client_ip = request.client.host if request.client else ""
    context = AuthContext(cookies=dict(request.cookies), client_ip=client_ip)
    request.state.auth = context
    response = await call_next(request)
    context.apply(response, settings)
    return response


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "Validation failed", "errors": exc.errors},
    )


@app.exception_handler(InvalidCredentialsError)
async def invalid_credentials_handler(request: Request, exc: InvalidCredentialsError):
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": INVALID_CREDENTIALS_MESSAGE},
    )


@app.exception_handler(TooManyAttemptsError)
async def too_many_attempts_handler(request: Request, exc: TooManyAttemptsError):
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"detail": str(exc)},
        headers={"Retry-After": str(exc.retry_after)},
    )


@app.exception_handler(Unauthenticated)
async def unauthenticated_handler(request: Request, exc: Unauthenticated):
    """Browsers get sent to the login form, API clients get a 401."""
    if "text/html" in request.headers.get("accept", ""):
        return RedirectResponse(
            url=app.url_path_for("auth.login_form"),
            status_code=status.HTTP_303_SEE_OTHER,
        )
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": "Authentication required"},
    )


# Register routers
app.include_router(auth.router)


@app.get("/health", name="health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
