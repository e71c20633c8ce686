import os

import uvicorn

from kcheck.app import app


if __name__ == "__main__":
    uvicorn.run(
        app,
        host=os.environ.get("KC_HOST", "127.0.0.1"),
        port=int(os.environ.get("KC_PORT", "8000")),
    )
