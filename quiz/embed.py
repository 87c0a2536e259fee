"""Build the iframe URL the embeddable loader opens."""

from dataclasses import dataclass
from typing import Any, Dict
from urllib.parse import urlencode

__all__ = ["WidgetConfig", "build_app_url"]


@dataclass(frozen=True)
class WidgetConfig:
    """Defaults the host page sets on the loader script tag."""

    app_url: str
    retailer: str = ""
    theme: str = "light"
    budget: str = ""


def build_app_url(config: WidgetConfig, **params: Any) -> str:
    """Return the quiz app URL with the widget parameters in the query string.

    Per-button params (e.g. ``budget``, ``use_case``) override the config
    defaults; None and empty values are left out.

    Args:
        config: Loader defaults.
        **params: Per-open overrides.

    Returns:
        The app URL, joined with '?' or '&' depending on whether it already
        has a query string.
    """
    merged: Dict[str, Any] = {
        "retailer": config.retailer,
        "theme": config.theme,
        "budget": config.budget,
    }
    for key, value in params.items():
        if value is not None and value != "":
            merged[key] = value

    query = urlencode({k: v for k, v in merged.items() if v is not None and v != ""})
    if not query:
        return config.app_url
    separator = "&" if "?" in config.app_url else "?"
    return f"{config.app_url}{separator}{query}"
