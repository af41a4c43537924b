"""Kida environment for the admin templates.

Templates ship inside the package under ``roost/templates/admin``. A
``template_dir`` in ``AdminConfig`` is searched first, so a project can
override any admin template by placing a file with the same name there.

Full-page requests render the whole template; htmx fragment requests
render only its ``content`` block.
"""

import html
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote, urlencode

from kida import ChoiceLoader, Environment, FileSystemLoader, PackageLoader
from kida.template import Markup

from roost.config import AdminConfig

FRAGMENT_BLOCK = "content"


def qs(base: str, params: Mapping[str, Any] | None = None, **extra: Any) -> str:
    """Append query-string parameters to a URL path.

    Omits parameters whose values are falsy (None, "", 0, False).

    Example:
        {{ changelist_url | qs(filter_params, p=page) }}
        -> "/admin/articlemodel/?published=true&p=2"
    """
    merged = {**(params or {}), **extra}
    filtered = {k: v for k, v in merged.items() if v}
    if not filtered:
        return base
    encoded = urlencode({k: str(v) for k, v in filtered.items()}, quote_via=quote)
    sep = "&" if "?" in base else "?"
    return f"{base}{sep}{encoded}"


def field_errors(errors: Any, field_name: str) -> list[str]:
    """Validation errors for one form field, or an empty list.

    Example:
        {% for msg in errors | field_errors("title") %}
          <p class="errornote">{{ msg }}</p>
        {% end %}
    """
    if not errors or not isinstance(errors, Mapping):
        return []
    return list(errors.get(field_name, ()))


def attr(value: Any, name: str) -> str | Markup:
    """Output an HTML attribute when value is truthy, else empty string."""
    if not value:
        return ""
    if value is True:
        return Markup(f" {name}")
    return Markup(f' {name}="{html.escape(str(value))}"')


ADMIN_FILTERS: dict[str, Any] = {
    "attr": attr,
    "field_errors": field_errors,
    "qs": qs,
}


def create_environment(config: AdminConfig) -> Environment:
    """Create the admin's kida Environment. Called once per app."""
    loaders = []
    if config.template_dir is not None:
        loaders.append(FileSystemLoader(str(config.template_dir)))
    loaders.append(PackageLoader("roost", "templates"))

    env = Environment(
        loader=ChoiceLoader(loaders),
        autoescape=config.autoescape,
        auto_reload=config.debug,
    )
    env.update_filters(ADMIN_FILTERS)
    env.add_global("site_title", config.site_title)
    env.add_global("site_header", config.site_header)
    env.add_global("url_prefix", config.url_prefix)
    return env


def render(env: Environment, name: str, context: Mapping[str, Any], *, fragment: bool = False) -> str:
    """Render template *name*; only its content block when *fragment*."""
    template = env.get_template(name)
    if fragment:
        return template.render_block(FRAGMENT_BLOCK, dict(context))
    return template.render(dict(context))
