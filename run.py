"""
Entry point for the billiards service.

Running this script with ``python run.py`` starts the FastAPI server
that exposes the billiards core over HTTP.  The application defined in
``backend/billiards/main.py`` is imported after adjusting the Python
path to include the repository root.
"""

from __future__ import annotations

import sys
from pathlib import Path

import logging
import uvicorn

logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def main() -> None:
    """Run the Uvicorn server hosting the billiards API."""
    # Make ``backend`` importable from the repository root.
    repo_root = Path(__file__).resolve().parent
    if str(repo_root) not in sys.path:
        sys.path.append(str(repo_root))

    # Import inside main() to avoid modifying sys.path at import time.
    from backend.billiards.main import app  # type: ignore

    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
