"""adapters.py: platform detection and, for multi-platform capsules, adapters."""

from __future__ import annotations

from ...models import PLATFORM_CAPABILITIES, TemplateContext
from ._common import block, dunder_all, module_docstring, render

FILENAME = "adapters.py"

TEMPLATE = '''\
$docstring

from __future__ import annotations

import sys
from typing import Any, Dict, List, Optional, Protocol, Tuple, Type

from .errors import ConfigurationError
from .types import Platform, PlatformCapabilities

PLATFORM_CAPABILITIES: Dict[str, PlatformCapabilities] = {
$capability_table
}


def detect_platform() -> Platform:
    """Best guess of the platform this interpreter runs on."""
    if sys.platform == "emscripten":
        return "browser"
    if sys.platform in ("ios", "android"):
        return "mobile"
    if sys.platform == "wasi":
        return "universal"
    return "server"


def get_platform_capabilities(platform: Optional[Platform] = None) -> PlatformCapabilities:
    key = platform or detect_platform()
    if key not in PLATFORM_CAPABILITIES:
        raise ConfigurationError(f"Unknown platform: {key}")
    return PLATFORM_CAPABILITIES[key]
$adapters

$all
'''

MULTI_PLATFORM_ADAPTERS = '''

class ${c}Adapter(Protocol):
    """Platform-specific backend used by the service."""

    platform: Platform
    capabilities: PlatformCapabilities

    def is_available(self) -> bool: ...

    async def execute(self, operation: str, payload: Any = None) -> Any: ...


class BaseAdapter:
    platform: Platform = "universal"

    def __init__(self) -> None:
        self.capabilities = PLATFORM_CAPABILITIES[self.platform]

    def is_available(self) -> bool:
        return True

    async def execute(self, operation: str, payload: Any = None) -> Any:
        raise NotImplementedError(f"{type(self).__name__} does not implement '{operation}'")


class ServerAdapter(BaseAdapter):
    platform: Platform = "server"

    def is_available(self) -> bool:
        return sys.platform not in ("emscripten", "wasi")


class BrowserAdapter(BaseAdapter):
    platform: Platform = "browser"

    def is_available(self) -> bool:
        return sys.platform == "emscripten"


class UniversalAdapter(BaseAdapter):
    platform: Platform = "universal"


# Preference order when no platform is requested
_ADAPTERS: Tuple[Type[BaseAdapter], ...] = (ServerAdapter, BrowserAdapter, UniversalAdapter)


def create_adapter(platform: Optional[Platform] = None) -> ${c}Adapter:
    """Adapter for ``platform``, or the first available one."""
    if platform is not None:
        for adapter_cls in _ADAPTERS:
            if adapter_cls.platform == platform:
                return adapter_cls()
        raise ConfigurationError(f"No adapter for platform: {platform}")
    for adapter_cls in _ADAPTERS:
        adapter = adapter_cls()
        if adapter.is_available():
            return adapter
    return UniversalAdapter()


def get_available_adapters() -> List[Platform]:
    return [adapter_cls.platform for adapter_cls in _ADAPTERS if adapter_cls().is_available()]
'''


def _capability_table() -> list[str]:
    rows = []
    for platform, caps in PLATFORM_CAPABILITIES.items():
        rows.append(
            f'    "{platform.value}": PlatformCapabilities(\n'
            f'        platform="{platform.value}",\n'
            f"        supports_file_system={caps.supports_file_system},\n"
            f"        supports_network={caps.supports_network},\n"
            f"        supports_storage={caps.supports_storage},\n"
            f"        supports_workers={caps.supports_workers},\n"
            f"        supports_console_colors={caps.supports_console_colors},\n"
            "    ),"
        )
    return rows


def defined_names(ctx: TemplateContext) -> list[str]:
    names = ["PLATFORM_CAPABILITIES", "detect_platform", "get_platform_capabilities"]
    if ctx.is_multi_platform:
        names += [
            f"{ctx.class_name}Adapter",
            "BaseAdapter",
            "ServerAdapter",
            "BrowserAdapter",
            "UniversalAdapter",
            "create_adapter",
            "get_available_adapters",
        ]
    return names


def render_adapters(ctx: TemplateContext) -> str:
    adapters = ""
    if ctx.is_multi_platform:
        adapters = render(FILENAME, MULTI_PLATFORM_ADAPTERS, c=ctx.class_name)
    return render(
        FILENAME,
        TEMPLATE,
        docstring=module_docstring(ctx, f"Platform adapters for the {ctx.capsule.name} capsule."),
        capability_table=block(_capability_table()),
        adapters=adapters,
        all=dunder_all(defined_names(ctx)),
    )
