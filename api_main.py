"""ASGI entrypoint: `uvicorn api_main:app --port 3001`."""

import uvicorn

from app.api.fastapi_app import app
from app.config import API_HOST, API_PORT

__all__ = ["app"]

if __name__ == "__main__":
    uvicorn.run("api_main:app", host=API_HOST, port=API_PORT)
