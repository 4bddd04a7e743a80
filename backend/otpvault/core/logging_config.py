import logging
import sys

logger = logging.getLogger("otpvault")

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Attach a single stream handler to the ``otpvault`` logger (idempotent)."""
    logger.setLevel(level.upper())
    if not any(getattr(h, "_otpvault", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._otpvault = True
        logger.addHandler(handler)
    # emitted once, by our handler only
    logger.propagate = False
