import logging
import sys

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = None) -> None:
    """Configura o logging raiz uma única vez (chamadas repetidas só ajustam o nível)."""
    level_name = (level or settings.LOG_LEVEL or "INFO").upper()
    root = logging.getLogger()
    if not any(getattr(h, "_marketdash", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._marketdash = True
        root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))

    # requests/urllib3 são verbosos em DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)
