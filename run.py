"""Entry point for running the Event Hub API with uvicorn.

Host, port and reload mode are read from the environment variables
``HOST``, ``PORT`` and ``RELOAD``.  Application settings (database
path, secrets, log level) come from the variables documented in
``event_hub_api.app.core.config``.

Usage:
    python run.py
"""
import os

import uvicorn


def main() -> None:
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    reload = os.getenv("RELOAD", "false").lower() in {"1", "true", "yes"}
    uvicorn.run("event_hub_api.app.main:app", host=host, port=port, reload=reload, log_level="info")


if __name__ == "__main__":
    try:
        main()
    except (KeyboardInterrupt, SystemExit):
        pass
