"""Admin registry, model options, field reflection, and bulk actions."""

__all__ = [
    "AdminAction",
    "AdminSite",
    "FieldInfo",
    "FieldKind",
    "ModelAdmin",
    "action",
    "model_field",
]


def __getattr__(name: str) -> object:
    """Lazy imports; the submodules import each other through this package."""
    if name == "AdminSite":
        from roost.admin.site import AdminSite

        return AdminSite

    if name == "ModelAdmin":
        from roost.admin.options import ModelAdmin

        return ModelAdmin

    if name in ("AdminAction", "action"):
        from roost.admin import actions

        return getattr(actions, name)

    if name in ("FieldInfo", "FieldKind", "model_field"):
        from roost.admin import fields

        return getattr(fields, name)

    msg = f"module 'roost.admin' has no attribute {name!r}"
    raise AttributeError(msg)
