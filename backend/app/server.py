import os

import uvicorn

from app.config import get_settings


def run():
    """Serve the API with uvicorn; PORT and LOG_LEVEL come from the environment."""
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("app.main:app", host="0.0.0.0", port=port, log_level=get_settings().log_level.lower())


if __name__ == "__main__":
    run()
