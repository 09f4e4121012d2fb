"""Entry point: python -m wsdl2api.bridge

Loads the WSDL named in Settings and serves the REST bridge with uvicorn.
"""

from __future__ import annotations

import logging
import sys

import uvicorn

from ..config import LOG_FORMAT, get_settings
from ..errors import FetchError, ParseError
from ..ir_builder import build
from ..loader import fetch_wsdl
from .app import create_app

logger = logging.getLogger("wsdl2api.bridge")


def main() -> int:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    try:
        definition = build(fetch_wsdl(settings.wsdl, timeout=settings.fetch_timeout))
    except (FetchError, ParseError) as exc:
        logger.error("%s", exc)
        return 1

    app = create_app(definition, settings)
    logger.info("Starting bridge on %s", settings.bridge_url)
    uvicorn.run(app, host=settings.bridge_host, port=settings.bridge_port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
