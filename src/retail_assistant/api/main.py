"""FastAPI surface over AssistantService."""

from typing import Any, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from retail_assistant.config import settings
from retail_assistant.errors import InputError, NotFoundError
from retail_assistant.logging import get_logger
from retail_assistant.service import AssistantService

logger = get_logger(__name__)

VERSION = "0.1.0"


class TrainRequest(BaseModel):
    question: str
    answer: str


class TrainResponse(BaseModel):
    id: str
    action: str


class BulkTrainRequest(BaseModel):
    # Entries stay loosely typed so one bad item fails alone instead of the request
    faqs: List[dict[str, Any]]
    batch_size: Optional[int] = None


class AskRequest(BaseModel):
    question: str


class UpdateRequest(BaseModel):
    question: Optional[str] = None
    answer: Optional[str] = None


class MatchRequest(BaseModel):
    text: str


class HealthResponse(BaseModel):
    status: str
    version: str
    components: dict[str, str]


def _service(request: Request) -> AssistantService:
    service: Optional[AssistantService] = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Assistant not initialized. Check service health.")
    return service


def _configure_startup_event(app: FastAPI) -> None:
    @app.on_event("startup")
    async def startup_event() -> None:
        logger.info("Starting up retail assistant API")
        if getattr(app.state, "service", None) is None:
            try:
                app.state.service = AssistantService()
                logger.info("Assistant initialization completed")
            except Exception as e:
                logger.error(f"Failed to initialize assistant: {e}")
                raise


def _configure_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(InputError)
    async def input_error(_: Request, exc: InputError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def not_found(_: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def _configure_health_endpoint(app: FastAPI) -> None:
    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request) -> HealthResponse:
        ready = getattr(request.app.state, "service", None) is not None
        return HealthResponse(
            status="healthy" if ready else "unhealthy",
            version=VERSION,
            components={
                "assistant": "ready" if ready else "not_initialized",
                "embed_backend": settings.EMBED_BACKEND,
                "embed_model": settings.EMBED_MODEL,
                "llm_model": settings.LLM_MODEL,
            },
        )


def _configure_faq_endpoints(app: FastAPI) -> None:
    @app.post("/faq/train", response_model=TrainResponse)
    def train(body: TrainRequest, request: Request) -> TrainResponse:
        result = _service(request).train(body.question, body.answer)
        return TrainResponse(id=result.entry_id, action=result.action)

    @app.post("/faq/train/bulk")
    def train_bulk(body: BulkTrainRequest, request: Request) -> dict[str, Any]:
        return _service(request).train_batch(body.faqs, batch_size=body.batch_size).to_dict()

    @app.post("/faq/ask")
    def ask(body: AskRequest, request: Request) -> dict[str, Any]:
        logger.info(f"Processing question: {body.question}")
        return _service(request).ask(body.question)

    @app.get("/faq")
    def list_faqs(
        request: Request, page: int = 1, limit: int = 10, search: Optional[str] = None
    ) -> dict[str, Any]:
        listing = _service(request).list_entries(page=page, limit=limit, search=search)
        listing["results"] = [e.to_dict() for e in listing["results"]]
        return listing

    @app.get("/faq/stats")
    def faq_stats(request: Request) -> dict[str, Any]:
        return _service(request).faq_stats()

    @app.get("/faq/{entry_id}")
    def get_faq(entry_id: str, request: Request) -> dict[str, Any]:
        return _service(request).get_entry(entry_id).to_dict()

    @app.patch("/faq/{entry_id}")
    def update_faq(entry_id: str, body: UpdateRequest, request: Request) -> dict[str, Any]:
        entry = _service(request).update_entry(entry_id, question=body.question, answer=body.answer)
        return entry.to_dict()

    @app.delete("/faq/{entry_id}")
    def delete_faq(entry_id: str, request: Request) -> dict[str, Any]:
        _service(request).delete_entry(entry_id)
        return {"deleted": entry_id}

    @app.delete("/faq")
    def clear_faqs(request: Request) -> dict[str, Any]:
        return {"deleted": _service(request).clear_all()}


def _configure_template_endpoints(app: FastAPI) -> None:
    @app.get("/templates")
    def list_templates(request: Request, category: str = "all") -> dict[str, Any]:
        templates = _service(request).list_templates(category)
        return {"category": category, "count": len(templates), "templates": templates}

    @app.post("/templates/match")
    def match_template(body: MatchRequest, request: Request) -> dict[str, Any]:
        return _service(request).match_template(body.text)


def _configure_stats_endpoint(app: FastAPI) -> None:
    @app.get("/stats")
    def get_stats(request: Request) -> dict[str, Any]:
        return {
            "assistant_stats": _service(request).stats(),
            "config": {
                "embed_backend": settings.EMBED_BACKEND,
                "llm_model": settings.LLM_MODEL,
                "embed_model": settings.EMBED_MODEL,
                "faq_similarity_tau": settings.FAQ_SIMILARITY_TAU,
                "use_llm_intent": settings.USE_LLM_INTENT,
            },
        }


def create_app(service: Optional[AssistantService] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        service: Pre-built assistant; built on startup when omitted

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Retail Assistant API",
        description="Question resolution and FAQ training for the retail analytics assistant",
        version=VERSION,
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _configure_startup_event(app)
    _configure_error_handlers(app)
    _configure_health_endpoint(app)
    _configure_faq_endpoints(app)
    _configure_template_endpoints(app)
    _configure_stats_endpoint(app)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "retail_assistant.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
    )
