from __future__ import annotations
import logging
import sys
import uuid
from pythonjsonlogger import jsonlogger
from fastapi import Request
from ..config import get_settings

S = get_settings()


def setup_logging() -> None:
    """One JSON line per record on stdout, tagged with the app name and environment."""
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(levelname)s %(name)s %(message)s %(asctime)s %(request_id)s %(extra)s",
            static_fields={"service": S.APP_NAME, "env": S.ENV},
        )
    )
    root.addHandler(handler)
    root.setLevel(S.LOG_LEVEL)

    # access lines come from RequestContextMiddleware instead
    logging.getLogger("uvicorn.access").setLevel("WARNING")
    if S.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel("INFO")


def get_request_id(req: Request) -> str:
    rid = req.headers.get(S.REQUEST_ID_HEADER)
    return rid if rid else uuid.uuid4().hex
