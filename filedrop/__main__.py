"""filedrop entrypoint.

Run with:
  python -m filedrop
"""

import os

import uvicorn


def main() -> None:
    host = os.getenv("FILEDROP_HOST", "0.0.0.0")
    port = int(os.getenv("FILEDROP_PORT", "8000"))
    reload = os.getenv("FILEDROP_RELOAD", "false").lower() in {"1", "true", "yes", "y"}
    uvicorn.run("filedrop.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    main()
