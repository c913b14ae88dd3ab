import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.api.routes_files import router as files_router
from backend.app.api.routes_view import router as view_router
from backend.app.api.routes_settings import router as settings_router, load_settings
from backend.app.logging_config import setup_logging
from backend.app.services.progress.tracker import LifecycleEngine
from backend.app.services.view.projection import ViewProjection

logger = logging.getLogger(__name__)


# ===============================
# Engine lifetime
# ===============================
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = load_settings()
    setup_logging(settings["log_level"])

    app.state.engine = LifecycleEngine.from_settings(settings)
    app.state.view = ViewProjection(page_size=settings["page_size"])
    logger.info("[OK] Lifecycle engine started")

    yield

    # Stop every pending timer before the collection is discarded
    app.state.engine.shutdown()


app = FastAPI(
    title="Knowledgebase File Manager",
    version="1.0.0",
    lifespan=lifespan
)

# ===============================
# CORS (Frontend ↔ Backend)
# ===============================
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # for development only
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ===============================
# API Routes
# ===============================
app.include_router(
    files_router,
    prefix="/files",
    tags=["Files"]
)

app.include_router(
    view_router,
    prefix="/view",
    tags=["View"]
)

app.include_router(
    settings_router,
    prefix="/api",
    tags=["Settings"]
)


@app.get("/")
def root():
    return {"message": "Knowledgebase backend is running"}
