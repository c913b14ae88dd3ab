"""
Entry point for running the knowledgebase backend with uvicorn.
"""
import os

import uvicorn

from backend.app.api.routes_settings import ensure_settings_dir, get_settings_dir, load_settings


if __name__ == "__main__":
    ensure_settings_dir()
    settings = load_settings()

    print(f"User Data Directory: {get_settings_dir()}")
    print("Starting Knowledgebase Backend Server...")

    uvicorn.run(
        "backend.main:app",
        host=os.getenv("KNOWLEDGEBASE_HOST", "127.0.0.1"),
        port=int(os.getenv("KNOWLEDGEBASE_PORT", "8000")),
        log_level=settings["log_level"].lower()
    )
