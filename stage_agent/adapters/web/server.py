"""FastAPI application."""

from fastapi import FastAPI

from stage_agent.adapters.web.advisor_routes import advisor_router
from stage_agent.config import __version__

app = FastAPI(title="Stage Advisor", version=__version__)
app.include_router(advisor_router)


@app.get("/health")
async def health():
    return {"ok": True}
