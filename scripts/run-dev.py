"""
FastAPI Development Server

Same as run-prod.py, with auto-reload on changes under support_chat/.

Usage:
    python scripts/run-dev.py
    PORT=3001 python scripts/run-dev.py
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
    """Start the FastAPI development server"""
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))

    logger.info(f"Apex Support Chat - dev server on http://{host}:{port} (docs at /docs)")

    uvicorn.run(
        "support_chat.api.app:app",
        host=host,
        port=port,
        reload=True,
        log_level="debug",
        reload_dirs=[str(project_root / "support_chat")]
    )


if __name__ == "__main__":
    main()
