"""service.py: the async service class with its lifecycle, stats and events."""

from __future__ import annotations

from ...models import MigrationMode, TemplateContext
from ._common import dunder_all, escape_docstring, module_docstring, render

FILENAME = "service.py"

TEMPLATE = '''\
$docstring

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Any, Dict, List, Optional, Union

from .constants import RETRY_BACKOFF_MULTIPLIER
from .errors import (
    ConfigurationError,
    ExecutionError,
    InitializationError,
    OperationTimeoutError,
    ${c}Error,
)
from .types import (
    ${c}Config,
    ${c}Event,
    ${c}EventHandler,
    ${c}Input,
    ${c}Result,
    ${c}ServiceState,
    ${c}Stats,
)
from .utils import validate_config

logger = logging.getLogger(__name__)


class ${c}Service:
    """$description

    Lifecycle: ``initialize()``, then any number of ``execute()`` calls,
    then ``cleanup()``. States move uninitialized -> initializing -> ready,
    ready <-> executing, and back to uninitialized through cleanup.
    """

    def __init__(self, config: Union[${c}Config, Dict[str, Any], None] = None) -> None:
        self._config = self._validate_and_merge_config(config)
        self._state: ${c}ServiceState = "uninitialized"
        self._stats = ${c}Stats()
        self._handlers: Dict[str, List[${c}EventHandler]] = {}
        self._started_at: Optional[float] = None

    @property
    def config(self) -> ${c}Config:
        return self._config

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        if self._state == "initializing":
            raise InitializationError("Service is already initializing")
        if self._state in ("ready", "executing"):
            raise InitializationError("Service is already initialized")

        self._state = "initializing"
        try:
            await self._acquire_resources()
        except Exception as error:
            self._state = "error"
            self._emit("error", {"error": str(error)})
            raise InitializationError(f"Initialization failed: {error}") from error

        self._started_at = time.monotonic()
        self._state = "ready"
        self._emit("initialized")
        logger.debug("${c}Service initialized")

    async def execute(self, data: ${c}Input) -> ${c}Result:
        if self._state != "ready":
            raise ExecutionError(f"Service is not ready (state: {self._state})")

        self._state = "executing"
        started = time.perf_counter()
        try:
            output = await self._execute_with_retry(data)
            elapsed = time.perf_counter() - started
            self._update_stats(True, elapsed)
            self._emit("executed", {"duration": elapsed})
            return ${c}Result(success=True, data=output, metadata={"duration": elapsed})
        except Exception as error:
            self._update_stats(False, time.perf_counter() - started)
            self._state = "error"
            self._emit("error", {"error": str(error)})
            if isinstance(error, ${c}Error):
                raise
            raise ExecutionError(f"Execution failed: {error}") from error
        finally:
            # the service stays usable after a failed call
            self._state = "ready"

    async def cleanup(self) -> None:
        if self._state == "uninitialized":
            return
        self._state = "cleanup"
        try:
            await self._release_resources()
        finally:
            self._state = "uninitialized"
            self._started_at = None
            self._emit("cleanup")

    # ------------------------------------------------------------------
    # State, stats and events
    # ------------------------------------------------------------------

    def get_stats(self) -> ${c}Stats:
        uptime = 0.0
        if self._started_at is not None:
            uptime = time.monotonic() - self._started_at
        return replace(self._stats, uptime=uptime)

    def is_initialized(self) -> bool:
        return self._state in ("ready", "executing")

    def get_state(self) -> ${c}ServiceState:
        return self._state

    def reset_stats(self) -> None:
        self._stats = ${c}Stats()

    def on(self, event_type: str, handler: ${c}EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def off(self, event_type: str, handler: ${c}EventHandler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_and_merge_config(
        config: Union[${c}Config, Dict[str, Any], None],
    ) -> ${c}Config:
        if config is None:
            merged = ${c}Config()
        elif isinstance(config, ${c}Config):
            merged = config
        elif isinstance(config, dict):
            try:
                merged = replace(${c}Config(), **config)
            except TypeError as error:
                raise ConfigurationError(f"Unknown configuration option: {error}") from error
        else:
            raise ConfigurationError(f"Unsupported configuration type: {type(config).__name__}")

        result = validate_config(merged)
        if not result.valid:
            raise ConfigurationError("; ".join(result.errors), {"errors": result.errors})
        for warning in result.warnings:
            logger.warning(warning)
        return merged

    async def _acquire_resources(self) -> None:
        """Open whatever ``execute`` needs (connections, files, pools)."""

    async def _release_resources(self) -> None:
        """Release what ``_acquire_resources`` opened."""

    async def _execute_internal(self, data: ${c}Input) -> Any:
        """The capsule's business logic.

$internal_note
        """
        return data

    async def _execute_with_timeout(self, data: ${c}Input) -> Any:
        try:
            return await asyncio.wait_for(self._execute_internal(data), timeout=self._config.timeout)
        except asyncio.TimeoutError as error:
            raise OperationTimeoutError(
                f"Operation timed out after {self._config.timeout}s"
            ) from error

    async def _execute_with_retry(self, data: ${c}Input) -> Any:
        attempts = self._config.retry_attempts + 1
        for attempt in range(attempts):
            try:
                return await self._execute_with_timeout(data)
            except Exception as error:
                if attempt == attempts - 1:
                    raise
                delay = self._config.retry_delay * RETRY_BACKOFF_MULTIPLIER**attempt
                logger.debug(f"Attempt {attempt + 1} failed ({error}), retrying in {delay}s")
                await asyncio.sleep(delay)
        raise ExecutionError("No execution attempts were made")

    def _update_stats(self, success: bool, elapsed: float) -> None:
        stats = self._stats
        stats.total_operations += 1
        if success:
            stats.successful_operations += 1
        else:
            stats.failed_operations += 1
        stats.average_execution_time += (
            elapsed - stats.average_execution_time
        ) / stats.total_operations
        stats.last_execution_time = elapsed

    def _emit(self, event_type: str, data: Any = None) -> None:
        event = ${c}Event(type=event_type, timestamp=time.time(), data=data)
        for handler in list(self._handlers.get(event_type, [])):
            try:
                handler(event)
            except Exception:
                logger.exception(f"Event handler for '{event_type}' failed")


def create_${m}(config: Union[${c}Config, Dict[str, Any], None] = None) -> ${c}Service:
    return ${c}Service(config)


async def create_${m}_initialized(
    config: Union[${c}Config, Dict[str, Any], None] = None,
) -> ${c}Service:
    service = ${c}Service(config)
    await service.initialize()
    return service


$all
'''


def _internal_note(ctx: TemplateContext) -> str:
    if ctx.mode == MigrationMode.AUTO:
        note = "Echoes its input until the original behaviour is ported here."
    else:
        note = (
            f"Port the original logic here ({ctx.mode.value} migration); "
            "it echoes its input until then."
        )
    return f"        {note}"


def defined_names(ctx: TemplateContext) -> list[str]:
    m = ctx.module_name
    return [f"{ctx.class_name}Service", f"create_{m}", f"create_{m}_initialized"]


def render_service(ctx: TemplateContext) -> str:
    return render(
        FILENAME,
        TEMPLATE,
        docstring=module_docstring(ctx, f"Service for the {ctx.capsule.name} capsule."),
        c=ctx.class_name,
        m=ctx.module_name,
        description=escape_docstring(ctx.capsule.description.strip() or ctx.capsule.name),
        internal_note=_internal_note(ctx),
        all=dunder_all(defined_names(ctx)),
    )
