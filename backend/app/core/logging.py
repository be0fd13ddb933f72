import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Installs the service-wide log format.
    Safe to call more than once (uvicorn reloads, tests).
    """
    root = logging.getLogger()
    if not any(getattr(h, "_ett_handler", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._ett_handler = True
        root.addHandler(handler)
    root.setLevel(level.upper())
