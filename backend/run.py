#!/usr/bin/env python3
# backend/run.py
"""
Development server runner for the fitbook API.
"""
import os

import uvicorn

if __name__ == "__main__":
    host = os.environ.get("FITBOOK_HOST", "127.0.0.1")
    port = int(os.environ.get("FITBOOK_PORT", "8000"))
    print(f"Starting fitbook API at http://{host}:{port}")
    print(f"API Docs: http://{host}:{port}/docs")

    uvicorn.run("fitbook.main:app", host=host, port=port, reload=True, log_level="info")
