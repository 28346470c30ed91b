"""Default template provider used when no scaffolding subsystem is plugged in."""

from __future__ import annotations

from layerguard.graph.model import FileRole

_PURPOSE: dict[FileRole, str] = {
    FileRole.UI: "Render UI and trigger actions",
    FileRole.STORE: "Hold state",
    FileRole.SERVICE: "Talk to the transport layer",
    FileRole.INDEX: "Public API",
    FileRole.OTHER: "Module file",
}


def default_template(role: FileRole, context_name: str) -> str:
    """Return a minimal, reference-free stub for a *role* file in *context_name*."""
    return f"// {_PURPOSE[role]} for module '{context_name}'.\nexport {{}};\n"
