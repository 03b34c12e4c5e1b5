import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from backend import games
from backend.config import LLMConfig, build_llm, load_llm_config
from backend.routes import router

load_dotenv(Path(__file__).parent.parent / ".env")

STATIC_DIR = Path(__file__).parent / "static"


def create_app(llm_config: LLMConfig | None = None) -> FastAPI:
    config = llm_config or load_llm_config()
    games.init_games(lambda: build_llm(config), timeout=config.timeout)

    app = FastAPI(title="Quest Narrator")
    app.include_router(router, prefix="/api")

    if STATIC_DIR.exists() and not os.getenv("VITE_DEV", ""):
        # Serve static assets (JS, CSS, etc.)
        app.mount("/assets", StaticFiles(directory=STATIC_DIR / "assets"), name="assets")

        # SPA fallback: all non-API routes serve index.html
        @app.get("/{path:path}")
        async def spa_fallback(path: str):
            return FileResponse(STATIC_DIR / "index.html")

    return app


# Default app instance for uvicorn (reads LLM_* env vars)
app = create_app()
