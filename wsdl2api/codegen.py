"""Render templates and write generated output.

Each target is rendered completely in memory first.  Files are then written to
a staging directory that replaces the target directory as a whole, so a target
that fails never leaves partial output behind.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
from pathlib import Path
from typing import Any

import jinja2

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"


def _docstring(text: str) -> str:
    """Make text safe inside a triple-quoted Python docstring."""
    return text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')


def _comment(text: str) -> str:
    """Make text safe inside a /** ... */ block."""
    return text.replace("*/", "*\\/")


def make_environment() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
    )
    env.filters["pyrepr"] = repr
    env.filters["jsstr"] = json.dumps
    env.filters["docstring"] = _docstring
    env.filters["comment"] = _comment
    return env


def render(template_name: str, context: dict[str, Any], env: jinja2.Environment | None = None) -> str:
    env = env or make_environment()
    return env.get_template(template_name).render(**context)


def write_files(output_dir: Path, files: dict[str, str]) -> list[Path]:
    """Replace ``output_dir`` with exactly ``files`` (relative name -> content).

    The files are written to a sibling staging directory, which is swapped in
    for ``output_dir`` only once every file is on disk.  If the swap fails the
    previous directory is put back.
    """
    output_dir = Path(output_dir)
    output_dir.parent.mkdir(parents=True, exist_ok=True)
    staging = output_dir.parent / f".{output_dir.name}.staging"
    previous = output_dir.parent / f".{output_dir.name}.previous"
    for leftover in (staging, previous):
        if leftover.exists():
            shutil.rmtree(leftover)
    staging.mkdir()

    try:
        for name, content in files.items():
            path = staging / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")

        if output_dir.exists():
            os.replace(output_dir, previous)
        try:
            os.replace(staging, output_dir)
        except OSError:
            if previous.exists():
                os.replace(previous, output_dir)
            raise
    finally:
        shutil.rmtree(staging, ignore_errors=True)
        shutil.rmtree(previous, ignore_errors=True)

    written = [output_dir / name for name in files]
    for path in written:
        logger.info("Generated %s", path)
    return written
