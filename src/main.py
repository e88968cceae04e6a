"""PR Review Pipeline - FastAPI entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.config import ReviewConfig, settings
from src.core.exceptions import ApiException
from src.core.logging import get_logger
from src.core.schemas.responses import ErrorResponse, HealthResponse
from src.services.reviewer.routes import router as reviewer_router

logger = get_logger("main")

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = ReviewConfig.from_settings()
    logger.info(
        f"Review pipeline ready: model={settings.review_model} lenses={','.join(config.lenses)} "
        f"concurrency={config.review_concurrency}"
    )
    if not _github_configured():
        logger.warning("No GitHub credentials configured; reviews will fail until GITHUB_TOKEN is set")
    yield


app = FastAPI(
    title="PR Review Pipeline",
    description="Grouped, depth-aware GitHub pull request reviews",
    version=VERSION,
    lifespan=lifespan,
)


def _github_configured() -> bool:
    return bool(settings.github_token) or all(
        [settings.github_app_id, settings.github_private_key, settings.github_installation_id]
    )


@app.exception_handler(ApiException)
async def api_exception_handler(request: Request, exc: ApiException) -> JSONResponse:
    """Render pipeline errors in the shared error envelope."""
    logger.warning(f"{request.method} {request.url.path} failed: {exc.message} (status={exc.status_code})")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=exc.message,
            details=exc.details or None,
        ).model_dump(),
    )


app.include_router(reviewer_router, prefix="/api")


@app.get("/")
async def root():
    return {"service": "pr-review-pipeline", "version": VERSION, "docs": "/docs"}


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        version=VERSION,
        github_configured=_github_configured(),
        llm_configured=bool(settings.openrouter_api_key),
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("src.main:app", host=settings.host, port=settings.port, reload=settings.debug)
