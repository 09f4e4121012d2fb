"""The generation pipeline: load -> build IR -> emit each selected target.

A FetchError or ParseError aborts the run.  Each target is then rendered
completely in memory and written only if rendering succeeded, so one failing
emitter never leaves partial files behind and never stops the others.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from .codegen import make_environment, write_files
from .config import Settings
from .context_builder import build_context
from .emitters import mock, native, openapi, typescript
from .errors import GenerationError
from .ir_builder import IRBuilder, NameRegistry
from .loader import fetch_wsdl
from .models import Diagnostics, ServiceDefinition
from .projector import Target

logger = logging.getLogger(__name__)

# Extra output, emitted next to the targets when Settings.generate_mock is on.
MOCK = "mock"


@dataclass
class PipelineResult:
    definition: ServiceDefinition
    diagnostics: Diagnostics
    written: dict[str, list[Path]] = field(default_factory=dict)
    failed: dict[str, GenerationError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


def _emitters(settings: Settings, soap_version: str | None) -> dict[str, Callable[..., dict[str, str]]]:
    env = make_environment()
    return {
        Target.NATIVE.value: lambda ctx, reg: native.emit(
            ctx, reg,
            package_name=settings.package_name,
            client_security=settings.client_security,
            soap_version=soap_version,
            env=env,
        ),
        Target.OPENAPI.value: lambda ctx, reg: openapi.emit(ctx, reg, base_url=settings.bridge_url),
        Target.TYPESCRIPT.value: lambda ctx, reg: typescript.emit(
            ctx, reg,
            timeout_ms=settings.ts_timeout_ms,
            base_url=settings.bridge_url,
            env=env,
        ),
        MOCK: lambda ctx, reg: mock.emit(ctx, reg, soap_version=soap_version, env=env),
    }


def generate(
    definition: ServiceDefinition,
    registry: NameRegistry,
    settings: Settings,
) -> PipelineResult:
    """Run every configured emitter over an already built definition."""
    context: dict[str, Any] = build_context(definition, registry)
    if settings.soap_endpoint:
        context["endpoint"] = settings.soap_endpoint
    emitters = _emitters(settings, settings.soap_version)

    result = PipelineResult(definition=definition, diagnostics=registry.diagnostics)
    names = [Target(t).value for t in settings.targets]
    if settings.generate_mock:
        names.append(MOCK)
    for name in names:
        output_dir = Path(settings.output_dir) / name
        try:
            files = emitters[name](context, registry)
            result.written[name] = write_files(output_dir, files)
        except Exception as exc:
            error = GenerationError(name, exc)
            logger.error("%s; no files written for this target", error, exc_info=exc)
            result.failed[name] = error

    logger.info(
        "Generated %d target(s), %d failed; %s",
        len(result.written), len(result.failed), registry.diagnostics.summary(),
    )
    return result


def run(settings: Settings) -> PipelineResult:
    """Load the WSDL named in ``settings`` and generate every target."""
    raw = fetch_wsdl(settings.wsdl, timeout=settings.fetch_timeout)
    registry = NameRegistry()
    definition = IRBuilder(registry).build(raw)
    return generate(definition, registry, settings)
