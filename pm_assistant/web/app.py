import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from pm_assistant.core import settings
from pm_assistant.core.exceptions import SyncInProgressError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Rate limiting setup
limiter = Limiter(key_func=get_remote_address)

app = FastAPI(
    title="Project Assistant",
    docs_url="/docs" if os.environ.get("ENVIRONMENT") != "production" else None,
    redoc_url="/redoc" if os.environ.get("ENVIRONMENT") != "production" else None,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


class ChatRequest(BaseModel):
    message: Optional[str] = None
    projectContext: Optional[str] = None


@dataclass
class AssistantServices:
    """Everything the endpoints need, built once per process"""

    database: object
    repository: object
    vector_index: object
    coordinator: object
    router: object


def build_services() -> AssistantServices:
    """Wire the production services from settings"""
    from pm_assistant.data import SQLAlchemyProjectRepository, db_manager
    from pm_assistant.providers import create_embeddings, create_llm
    from pm_assistant.query_handlers import QueryRouter
    from pm_assistant.services import ChromaVectorIndex, IndexSyncEngine, SyncCoordinator

    logger.info("Initializing services...")
    repository = SQLAlchemyProjectRepository(db_manager)
    embedder = create_embeddings()
    vector_index = ChromaVectorIndex()
    llm = create_llm()

    engine = IndexSyncEngine(repository, embedder, vector_index)
    coordinator = SyncCoordinator(engine)
    router = QueryRouter(repository, embedder, vector_index, llm=llm, coordinator=coordinator)
    logger.info("Services initialized successfully")

    return AssistantServices(
        database=db_manager,
        repository=repository,
        vector_index=vector_index,
        coordinator=coordinator,
        router=router,
    )


def get_services(request: Request) -> AssistantServices:
    return request.app.state.services


@app.on_event("startup")
async def startup_event():
    logger.info("FastAPI app starting up...")

    # Tests install their own services before startup
    if getattr(app.state, "services", None) is None:
        from pm_assistant.data import init_database

        try:
            init_database()
            logger.info("Database initialized with SQLAlchemy")
        except Exception as e:
            logger.error(f"Database initialization failed: {e}")
            raise

        app.state.services = build_services()

    logger.info("App startup complete!")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("FastAPI app shutting down...")
    services = getattr(app.state, "services", None)
    if services is not None:
        await services.coordinator.shutdown()


@app.get("/health")
async def health_check():
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


@app.get("/health/database")
async def database_health_check(request: Request):
    try:
        from pm_assistant.data import DatabaseInitializer

        db_info = DatabaseInitializer(get_services(request).database).get_database_info()
        return {
            "status": "healthy" if db_info["connection_status"] == "Connected" else "unhealthy",
            "database_info": db_info,
            "timestamp": datetime.now().isoformat(),
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
            "timestamp": datetime.now().isoformat(),
        }


@app.get("/health/index")
async def index_health_check(request: Request):
    services = get_services(request)
    stats = await services.vector_index.stats()
    coordinator = services.coordinator
    return {
        "status": "healthy" if stats.get("status") == "available" else "unhealthy",
        "index": stats,
        "sync": {
            "busy": coordinator.is_busy,
            "scheduled": coordinator.is_scheduled,
            "last_result": coordinator.last_result.to_dict() if coordinator.last_result else None,
            "last_error": coordinator.last_error,
        },
        "timestamp": datetime.now().isoformat(),
    }


@app.post("/api/chatbot")
@limiter.limit(settings.CHAT_RATE_LIMIT)
async def chatbot(request: Request, body: ChatRequest):
    """Answer one chat message"""
    if not body.message or not body.message.strip():
        return JSONResponse(status_code=400, content={"error": "Message is required."})

    response = await get_services(request).router.handle_message(body.message, body.projectContext)
    if response.method_used == "error":
        return JSONResponse(status_code=500, content=response.additional_info)
    return response.reply.to_dict()


@app.post("/api/chatbot/sync")
async def sync_index(request: Request):
    """Rebuild the vector index now and report how many documents were indexed"""
    try:
        result = await get_services(request).coordinator.run_now()
        return result.to_dict()
    except SyncInProgressError as e:
        return JSONResponse(
            status_code=409,
            content={"error": "A sync is already in progress.", "details": str(e)},
        )
    except Exception as e:
        logger.error(f"Vector sync error: {str(e)}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to sync with the vector index.", "details": str(e)},
        )


@app.post("/api/chatbot/schedule-sync")
async def schedule_sync(request: Request):
    """Called after writes elsewhere; bursts collapse into one rebuild"""
    coordinator = get_services(request).coordinator
    coordinator.schedule()
    return {"scheduled": True, "delay": coordinator.debounce_seconds}
