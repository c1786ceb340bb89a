import logging
import os


def configure_logging(level: str = None):
    """
    Configure logging for the backend.

    App loggers follow LOG_LEVEL (default INFO); HTTP client and OpenAI
    loggers stay at WARNING so request bodies do not flood the output.
    """
    log_level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler()]
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)
