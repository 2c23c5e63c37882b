import uvicorn
from fastapi import FastAPI

from config.settings import UVICORN_CONFIG
from server.api.rest.dependencies import shutdown_dependencies, start_background_jobs
from server.api_router import api_router

app = FastAPI(
    title="Movie Catalog",
    description="Personal movie catalog: filtered listing and release-day email reminders",
)

app.include_router(api_router)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.on_event("startup")
async def startup_event():
    """Start the hourly reminder scheduler (fires once immediately)."""
    await start_background_jobs()


@app.on_event("shutdown")
async def shutdown_event():
    """Stop the scheduler and release pools/sessions."""
    await shutdown_dependencies()


if __name__ == "__main__":
    uvicorn.run("server.main:app", **UVICORN_CONFIG)
