import logging
import sys


def configure_logging(level: int = logging.INFO) -> None:
    """
    Configure root logging for the publisher.

    - one stdout handler, time / level / logger name / message
    - left alone when something (uvicorn, pytest) already installed handlers
    """
    root = logging.getLogger()

    if root.handlers:
        root.setLevel(level)
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
            datefmt="%H:%M:%S",
        )
    )

    root.addHandler(handler)
    root.setLevel(level)
