"""FastAPI application for editing rule graphs and exporting cursor rules."""

import logging
import os
import threading
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rulegraph.sdk.rule_generator import RuleGenerator
from rulegraph.session import EditorSession
from server.graph_routes import router as graph_router
from server.project_routes import router as project_router
from server.store_db import RULEGRAPH_DB_PATH, SqliteStore

from dotenv import load_dotenv
load_dotenv()  # load environment variables from .env file

# CORS origins - configurable via environment variable
# Use comma-separated values for multiple origins, or "*" for all (development only)
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the editor session on startup."""
    if not hasattr(app.state, "session"):
        app.state.session = EditorSession(SqliteStore(RULEGRAPH_DB_PATH))
    if not hasattr(app.state, "generator"):
        app.state.generator = RuleGenerator()
    app.state.lock = threading.Lock()
    logger.info("Editor session ready (db: %s)", RULEGRAPH_DB_PATH)
    yield


app = FastAPI(
    title="Rulegraph API",
    description="API server for rule graph editing, undo history and cursor rule export",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# include routes
app.include_router(project_router, prefix="/api")
app.include_router(graph_router, prefix="/api")


@app.get("/")
def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": "0.1.0",
        "db": str(RULEGRAPH_DB_PATH),
        "endpoints": {
            "projects": "/api/projects",
            "graph": "/api/graph",
            "rules": "/api/graph/rules",
        },
    }


def main() -> None:
    import uvicorn
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))


if __name__ == "__main__":
    main()
