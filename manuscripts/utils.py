from __future__ import annotations

from django.conf import settings


def build_frontend_url(path: str) -> str:
    base_url = getattr(settings, "FRONTEND_BASE_URL", "http://localhost:4200")
    if path.startswith("/"):
        path = path[1:]
    return f"{base_url.rstrip('/')}/{path}"


def build_file_url(relative_path: str | None) -> str | None:
    """Prefix a stored file reference with the configured files base URL."""
    if not relative_path:
        return None
    base_url = getattr(settings, "FILES_BASE_URL", "")
    if not base_url:
        return f"/{relative_path.lstrip('/')}"
    return f"{base_url.rstrip('/')}/{relative_path.lstrip('/')}"
