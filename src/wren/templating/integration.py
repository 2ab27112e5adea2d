"""Kida environment setup for ``ctx.html()``.

The environment is created on first render from the engine's template
directory and the functions registered with ``Engine.set_func_map()``.
"""

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from kida import Environment, FileSystemLoader


def create_environment(
    template_dir: str | Path,
    funcs: dict[str, Callable[..., Any]],
    *,
    autoescape: bool = True,
    auto_reload: bool = False,
) -> Environment:
    """Create a kida Environment rooted at *template_dir*.

    Each registered function is available both as a filter
    (``{{ value | name }}``) and as a global (``{{ name(value) }}``).
    """
    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=autoescape,
        auto_reload=auto_reload,
    )
    if funcs:
        env.update_filters(funcs)
        for name, func in funcs.items():
            env.add_global(name, func)
    return env


def template_context(data: Any) -> dict[str, Any]:
    """Turn handler data into a template context.

    Mappings are used as-is; anything else is exposed as ``data``.
    """
    if data is None:
        return {}
    if isinstance(data, Mapping):
        return dict(data)
    return {"data": data}


def render_template(env: Environment, name: str, data: Any = None) -> str:
    """Render template *name* to a string."""
    return env.get_template(name).render(template_context(data))
