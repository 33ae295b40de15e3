"""README.md: usage guide for the regenerated capsule."""

from __future__ import annotations

from ...models import MigrationMode, TemplateContext
from ..symbols import error_guard_name, error_kinds
from ._common import block, render

FILENAME = "README.md"

TEMPLATE = '''\
# $name

$banner$description

_Generated: ${generated_at} by ${generated_by}_

| | |
|---|---|
| Id | `$id` |
| Version | $version |
| Category | $category |
| Platforms | $platforms |

## Features

$features

## Quick Start

### 1. Create and initialize

```python
import asyncio

from $m import create_${m}_initialized


async def main():
    service = await create_${m}_initialized()
    result = await service.execute({"example": True})
    print(result.success, result.data)
    await service.cleanup()


asyncio.run(main())
```

### 2. Custom configuration

```python
from $m import ${c}Config, create_$m

service = create_$m(${c}Config(timeout=10.0, retry_attempts=1))
# or from a plain dict
service = create_$m({"debug": True})
```

### 3. Explicit lifecycle

```python
from $m import ${c}Service

service = ${c}Service()
await service.initialize()
try:
    result = await service.execute({"key": "value"})
finally:
    await service.cleanup()
```

### 4. Events

```python
service.on("executed", lambda event: print(event.type, event.data))
service.on("error", lambda event: print("failed:", event.data))
```

### 5. Statistics

```python
stats = service.get_stats()
print(stats.total_operations, stats.average_execution_time)
```

## Installation

```bash
pip install $package
```

## Configuration

| Option | Type | Default |
|---|---|---|
$config_rows

## API Reference

### `${c}Service`

| Method | Description |
|---|---|
| `await initialize()` | Acquire resources; moves the service to `ready` |
| `await execute(data)` | Run one operation and return a `${c}Result` |
| `await cleanup()` | Release resources; back to `uninitialized` |
| `get_stats()` | Snapshot of `${c}Stats` |
| `get_state()` | Current lifecycle state |
| `is_initialized()` | True while `ready` or `executing` |
| `on(event, handler)` / `off(event, handler)` | Subscribe to `initialized`, `executed`, `error`, `cleanup` |
| `reset_stats()` | Zero all counters |

### Factories

- `create_${m}(config=None)` returns an uninitialized service.
- `await create_${m}_initialized(config=None)` returns a ready service.
- `${constant}_CAPSULE` describes the capsule (id, version, platforms, factories).
$carried_api
## Advanced Usage

Retries use exponential backoff: attempt *n* waits `retry_delay * 2 ** n`
seconds. Each attempt is bounded by `timeout` seconds.

```python
from $m import retry_with_backoff, with_timeout

value = await with_timeout(fetch(), seconds=5)
value = await retry_with_backoff(fetch, max_attempts=5, base_delay=0.5)
```

## Error Handling

All errors derive from `${c}Error` and carry a `type` from `${c}ErrorType`.

| Error | Type | Severity |
|---|---|---|
$error_rows

```python
from $m import ${c}Error, format_error, ${base_guard}

try:
    await service.execute(data)
except ${c}Error as error:
    print(format_error(error))
```

## Platform Support

| Platform | File system | Network | Storage | Workers |
|---|---|---|---|---|
$platform_rows

## Performance

- Execution time is tracked per call in `get_stats().average_execution_time`.
- Keep `timeout` below `MAX_TIMEOUT` ($max_timeout seconds).

## Troubleshooting

- `ExecutionError: Service is not ready`: call `initialize()` first.
- `InitializationError: Service is already initialized`: reuse the service or call `cleanup()`.
- `OperationTimeoutError`: raise `timeout` or check the backing resource.

## Migration Notes

$migration_notes

## License

$license
'''


def _yes(flag: bool) -> str:
    return "yes" if flag else "no"


def _features(ctx: TemplateContext) -> list[str]:
    features = [
        "- Async lifecycle: initialize, execute, cleanup",
        "- Typed configuration with validation",
        "- Retry with exponential backoff and per-call timeouts",
        "- Execution statistics and lifecycle events",
        "- Structured errors with severity levels",
    ]
    if ctx.has_network:
        features.append("- Network operations")
    if ctx.has_file_system:
        features.append("- File system access")
    if ctx.has_database:
        features.append("- Database access")
    if ctx.is_multi_platform:
        features.append("- Platform adapters for " + ", ".join(p.value for p in ctx.capsule.platforms))
    return features


def _config_rows(ctx: TemplateContext) -> list[str]:
    rows = [
        "| `debug` | `bool` | `False` |",
        "| `timeout` | `float` | `30.0` |",
        "| `retry_attempts` | `int` | `3` |",
        "| `retry_delay` | `float` | `1.0` |",
    ]
    if ctx.has_network:
        rows += ["| `network_timeout` | `float` | `10.0` |", "| `max_connections` | `int` | `10` |"]
    if ctx.has_file_system:
        rows += ['| `base_path` | `str` | `"."` |', '| `encoding` | `str` | `"utf-8"` |']
    if ctx.has_database:
        rows += ['| `connection_string` | `str` | `""` |', "| `pool_size` | `int` | `10` |"]
    for config in ctx.carried_configs:
        default = config.default if config.default is not None else "None"
        rows.append(f"| `{config.name}` | `{config.type or 'Any'}` | `{default}` |")
    return rows


def _carried_api(ctx: TemplateContext) -> str:
    lines = []
    if ctx.carried_declarations:
        lines += ["", "### Types carried over", ""]
        lines += [f"- `{d.name}`" for d in ctx.carried_declarations]
    if ctx.carried_constants:
        lines += ["", "### Constants carried over", ""]
        lines += [f"- `{c.name}`" for c in ctx.carried_constants]
    if ctx.carried_functions:
        lines += ["", "### Functions awaiting migration", ""]
        lines += [f"- `{f.name}()` (raises `NotImplementedError`)" for f in ctx.carried_functions]
    return "\n".join(lines) + "\n"


def _platform_rows(ctx: TemplateContext) -> list[str]:
    return [
        f"| {caps.platform.value} | {_yes(caps.supports_file_system)} | "
        f"{_yes(caps.supports_network)} | {_yes(caps.supports_storage)} | "
        f"{_yes(caps.supports_workers)} |"
        for caps in ctx.capabilities
    ]


def _migration_notes(ctx: TemplateContext) -> str:
    lines = [f"Migrated in **{ctx.mode.value}** mode."]
    if ctx.migration_notes:
        lines.append("")
        lines += [f"- {note}" for note in ctx.migration_notes]
    else:
        lines += ["", "No manual follow-up was recorded."]
    return "\n".join(lines)


def render_readme(ctx: TemplateContext) -> str:
    capsule = ctx.capsule
    kinds = error_kinds(ctx.has_network, ctx.has_file_system, ctx.has_database)
    banner = ""
    if ctx.mode == MigrationMode.MANUAL:
        banner = (
            "> **Migration guide.** This capsule needs a manual migration; the generated "
            "files are scaffolding. Work through the Migration Notes below.\n\n"
        )
    return render(
        FILENAME,
        TEMPLATE,
        name=capsule.name,
        banner=banner,
        description=capsule.description,
        generated_at=ctx.generated_at,
        generated_by=ctx.generated_by,
        id=capsule.id,
        version=capsule.version,
        category=capsule.category,
        platforms=", ".join(p.value for p in capsule.platforms),
        features=block(_features(ctx)),
        m=ctx.module_name,
        c=ctx.class_name,
        constant=ctx.constant_name,
        package=ctx.package_name,
        config_rows=block(_config_rows(ctx)),
        carried_api=_carried_api(ctx),
        error_rows=block(
            f"| `{k.class_name}` | `{k.constant}` | {k.severity} |" for k in kinds
        ),
        base_guard=error_guard_name(f"{ctx.class_name}Error"),
        platform_rows=block(_platform_rows(ctx)),
        max_timeout="300",
        migration_notes=_migration_notes(ctx),
        license=capsule.license or "See the original capsule's license.",
    )
