from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
import logging
from pydantic import BaseModel, Field

from agent.agent import ReplyResolver, build_resolver, to_turns
from agent.core.prompt import GREETING
from config.settings import get_settings


def resolve_log_level(name: str) -> int:
    """Map a level name to its number, falling back to INFO for unknown names."""
    level = logging.getLevelName((name or "").upper())
    return level if isinstance(level, int) else logging.INFO


settings = get_settings()

logging.basicConfig(level=resolve_log_level(settings.log_level), format="[%(asctime)s] %(levelname)s - %(message)s")
logger = logging.getLogger("call_agent")

app = FastAPI(title="Voice Call Agent", version="1.0.0")

# CORS: allow local frontend during development
if settings.app_env.lower() in {"dev", "development", "local"}:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

PAGE_PATH = Path(__file__).parent / "static" / "index.html"
FAILURE_BODY = {"error": "Failed to process request"}


class AgentTurn(BaseModel):
    role: str = Field(..., description="'user' for the caller, anything else is the agent")
    content: str


class AgentRequest(BaseModel):
    message: str = Field(..., description="Caller's latest transcribed utterance")
    history: List[AgentTurn] = Field(
        default_factory=list,
        description="Earlier turns of this call in order (frontend-managed)",
    )


class AgentResponse(BaseModel):
    response: str
    audio: Optional[str] = None


@lru_cache(maxsize=1)
def get_resolver() -> ReplyResolver:
    return build_resolver(get_settings())


@app.exception_handler(RequestValidationError)
async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Rejected malformed request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=500, content=FAILURE_BODY)


@app.post("/api/agent", response_model=AgentResponse)
def agent_reply(req: AgentRequest, resolver: ReplyResolver = Depends(get_resolver)):
    try:
        logger.info(
            "Incoming utterance: chars=%s history_turns=%s",
            len(req.message),
            len(req.history),
        )
        history = to_turns(turn.model_dump() for turn in req.history)
        resolution = resolver.resolve_with_source(req.message, history)
        logger.info(
            "Replied from %s source: %s chars",
            resolution.source,
            len(resolution.reply),
        )
        return AgentResponse(response=resolution.reply, audio=None)
    except Exception as e:
        logger.exception("Agent request failed: %s", e)
        return JSONResponse(status_code=500, content=FAILURE_BODY)


@app.get("/", response_class=HTMLResponse)
def index():
    return PAGE_PATH.read_text(encoding="utf-8").replace("{{GREETING}}", GREETING)


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
