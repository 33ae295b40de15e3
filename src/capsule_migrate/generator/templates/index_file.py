"""__init__.py: public re-exports plus the capsule descriptor."""

from __future__ import annotations

from ...models import TemplateContext
from ._common import module_docstring, render

FILENAME = "__init__.py"

TEMPLATE = '''\
$docstring

from .types import *  # noqa: F401,F403
from .errors import *  # noqa: F401,F403
from .constants import *  # noqa: F401,F403
from .utils import *  # noqa: F401,F403
from .adapters import *  # noqa: F401,F403
from .service import *  # noqa: F401,F403
from .constants import DEFAULT_CONFIG
from .service import create_${m}, create_${m}_initialized
from .types import CapsuleDescriptor

${constant}_CAPSULE = CapsuleDescriptor(
    id=$id,
    name=$name,
    version=$version,
    category=$category,
    description=$description,
    platforms=$platforms,
    tags=$tags,
    author=$author,
    license=$license,
    create=create_${m},
    create_initialized=create_${m}_initialized,
    default_config=DEFAULT_CONFIG,
)
'''


def render_index(ctx: TemplateContext) -> str:
    capsule = ctx.capsule
    summary = f"{capsule.name} capsule."
    if capsule.description:
        summary += f"\n\n{capsule.description.strip()}"
    return render(
        FILENAME,
        TEMPLATE,
        docstring=module_docstring(ctx, summary),
        m=ctx.module_name,
        constant=ctx.constant_name,
        id=repr(capsule.id),
        name=repr(capsule.name),
        version=repr(capsule.version),
        category=repr(capsule.category),
        description=repr(capsule.description),
        platforms=repr(tuple(p.value for p in capsule.platforms)),
        tags=repr(tuple(capsule.tags)),
        author=repr(capsule.author),
        license=repr(capsule.license),
    )
