"""authapi entrypoint.

Run with:
  python -m authapi
"""

import logging
import os

import uvicorn


def main() -> None:
    logging.basicConfig(
        level=os.getenv("AUTH_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    host = os.getenv("AUTH_HOST", "0.0.0.0")
    port = int(os.getenv("AUTH_PORT", "8000"))
    reload = os.getenv("AUTH_RELOAD", "false").lower() in {"1", "true", "yes", "y"}
    uvicorn.run("authapi.app:app", host=host, port=port, reload=reload)

if __name__ == "__main__":
    main()
