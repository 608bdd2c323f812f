"""Asset discovery for bundled static files.

Locates static assets (favicon) shipped inside the redirector package.
"""

from importlib.resources import files
from pathlib import Path


def get_static_dir() -> Path:
    """Return path to bundled static assets.

    Returns:
        Path to the static directory.

    Raises:
        FileNotFoundError: If static assets are not bundled.
    """
    static = files("redirector").joinpath("static")
    if not static.is_dir():
        msg = "Bundled static assets not found. Reinstall the redirector package."
        raise FileNotFoundError(msg)
    return Path(str(static))
