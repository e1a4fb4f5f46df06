import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query

from genai_gateway.core.errors import GatewayError, NoProviderAvailable
from genai_gateway.db.models import init_db
from genai_gateway.db.session import get_db_connection, get_last_logs, get_usage_stats
from genai_gateway.llms.fallback import select_image_provider
from genai_gateway.schemas.request import GenerationRequest, StructureTextRequest
from genai_gateway.schemas.response import GenerationResult, StructureTextResponse
from genai_gateway.services.llm_service import generate, load_snapshot
from genai_gateway.services.operations import structure_text
from genai_gateway.utils.logger import logger

MAX_PROMPT_LENGTH = 20_000


def check_db_connected() -> bool:
    try:
        with get_db_connection() as conn:
            conn.execute("SELECT 1")
        return True
    except Exception:
        return False


def _http_error(e: GatewayError) -> HTTPException:
    logger.warning("request_failed", extra={"kind": e.kind, "provider": e.provider, "error": e.message})
    return HTTPException(status_code=e.status_code, detail=e.message)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="GenAI Dispatch Gateway", lifespan=lifespan)


@app.get("/")
async def root():
    return {
        "message": "GenAI Dispatch Gateway",
        "docs": "/docs",
        "health": "/health",
        "generate": "POST /generate",
    }


@app.get("/health")
async def get_health():
    db_ok = await asyncio.to_thread(check_db_connected)
    providers: dict[str, str] = {}
    image_provider = None
    if db_ok:
        snapshot = await load_snapshot()
        providers = snapshot.credentials.status()
        try:
            image_provider = select_image_provider(
                snapshot.row.image_provider_default, snapshot.credentials.availability()
            )
        except NoProviderAvailable:
            image_provider = None
    if not db_ok:
        status = "unhealthy"
    elif any(v == "configured" for v in providers.values()):
        status = "ok"
    else:
        status = "degraded"
    return {
        "status": status,
        "database": "connected" if db_ok else "failed",
        "providers": providers,
        "image_provider": image_provider,
    }


@app.get("/admin/logs")
async def get_admin_logs(limit: int = Query(20, ge=1, le=500)) -> list:
    return await asyncio.to_thread(get_last_logs, limit)


@app.get("/llm/stats")
async def get_llm_stats(time_range: str = Query("24h", pattern="^(1h|24h|3d|7d)$")) -> dict:
    return await asyncio.to_thread(get_usage_stats, time_range)


@app.post("/generate", response_model=GenerationResult)
async def post_generate(body: GenerationRequest) -> GenerationResult:
    if len(body.prompt) > MAX_PROMPT_LENGTH:
        raise HTTPException(status_code=413, detail="Prompt exceeds maximum length")
    try:
        return await generate(body.kind, body)
    except GatewayError as e:
        raise _http_error(e)


@app.post("/structure-text", response_model=StructureTextResponse)
async def post_structure_text(body: StructureTextRequest) -> StructureTextResponse:
    try:
        result = await structure_text(body.content, news_id=body.news_id, model=body.model)
    except GatewayError as e:
        raise _http_error(e)
    return StructureTextResponse(content=result.text or "", provider_used=result.provider_used)
