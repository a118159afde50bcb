#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.

Loads backend/.env (via settings) and serves the API with auto-reload.
Workers are started separately:
    celery -A app.tasks.celery_app worker -Q maintenance
    celery -A app.tasks.celery_app beat
"""
import os
from pathlib import Path
import sys

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

import uvicorn

if __name__ == "__main__":
    port = int(os.getenv("PORT", "8000"))
    print(f"🚀 Starting Massava API on http://localhost:{port}")
    print(f"📚 API Docs: http://localhost:{port}/docs")

    uvicorn.run("app.main:app", host="0.0.0.0", port=port, reload=True, log_level="info")
