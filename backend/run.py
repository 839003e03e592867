#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.

Creates the tables on the configured database and serves the API with
auto-reload. For local development only.
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
    from app.init_db import init_db

    init_db()

    port = int(os.getenv("PORT", "8000"))
    print("🚀 Starting Turfbook API development server…")
    print(f"🌐 Access at: http://localhost:{port}")
    print(f"📚 API Docs: http://localhost:{port}/docs")

    uvicorn.run("app.main:app", host="0.0.0.0", port=port, reload=True, log_level="info")
