"""Site import resolution: ``"module:attribute"`` strings to AdminSite instances."""

import importlib

from roost.admin.site import AdminSite
from roost.app import AdminApp


def resolve_site(import_string: str) -> AdminSite:
    """Resolve an import string to an ``AdminSite``.

    Accepts ``"module:attribute"``. When the attribute is omitted it
    defaults to ``"site"``. An ``AdminApp`` resolves to its site, and a
    factory function is called.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the object is not an AdminSite, AdminApp, or factory.
    """
    module_path, _, attr_name = import_string.partition(":")
    if not attr_name:
        attr_name = "site"

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    if callable(obj) and not isinstance(obj, (AdminSite, AdminApp)):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory function {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if isinstance(obj, AdminApp):
        obj = obj.site
    if not isinstance(obj, AdminSite):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not an AdminSite"
        raise TypeError(msg)
    return obj
