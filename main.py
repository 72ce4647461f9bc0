from __future__ import annotations

import os
import uvicorn

from app.logging_setup import configure_logging


def main() -> None:
    app_port = int(os.getenv("APP_PORT", "10000"))
    reload = os.getenv("RELOAD", "0") == "1"

    configure_logging()
    uvicorn.run(
        "app.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=app_port,
        reload=reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()
