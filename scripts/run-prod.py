"""
FastAPI Production Server

Run the Apex support chat API without reload. Host, port and worker count
come from HOST / PORT / WORKERS.

Usage:
    PORT=3001 python scripts/run-prod.py
"""

import sys
import os
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
os.chdir(project_root)

import uvicorn
from loguru import logger


def main():
    """Start the FastAPI production server"""
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    workers = int(os.getenv("WORKERS", "1"))

    logger.info(f"Apex Support Chat - API Server (Production) on {host}:{port}, workers={workers}")
    if workers > 1:
        # Rate-limit windows and session locks live in process memory
        logger.warning("Each worker keeps its own rate-limit counters and session locks")

    uvicorn.run(
        "support_chat.api.app:app",
        host=host,
        port=port,
        workers=workers,
        reload=False,
        log_level="info",
        access_log=True
    )


if __name__ == "__main__":
    main()
