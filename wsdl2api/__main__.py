"""Entry point: python -m wsdl2api

Reads Settings from the environment, generates every configured target under
``output_dir``.  Exits non-zero when the WSDL cannot be loaded or any target
failed.
"""

from __future__ import annotations

import logging
import sys

from .config import LOG_FORMAT, get_settings
from .errors import FetchError, ParseError
from .pipeline import run

logger = logging.getLogger("wsdl2api")


def main() -> int:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    try:
        result = run(settings)
    except (FetchError, ParseError) as exc:
        logger.error("%s", exc)
        return 1

    for target, paths in result.written.items():
        logger.info("%s: %d file(s) in %s", target, len(paths), settings.output_dir / target)
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
