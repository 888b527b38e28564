"""Home and storage directory utilities.

Captured images live under ``~/.unmasklab/CapturedPhotos`` by default.
Override the home directory with the ``UNMASKLAB_HOME`` environment variable.
"""

import os
from pathlib import Path

IMAGES_DIRNAME = "CapturedPhotos"


def get_home_dir() -> Path:
    """Return the unmasklab home directory, creating it if needed.

    Resolution order:
        1. ``UNMASKLAB_HOME`` environment variable (absolute or relative to CWD).
        2. ``~/.unmasklab`` (default).
    """
    home = os.environ.get("UNMASKLAB_HOME")
    if home:
        home_dir = Path(home)
        if not home_dir.is_absolute():
            home_dir = Path.cwd() / home_dir
    else:
        home_dir = Path.home() / ".unmasklab"
    home_dir.mkdir(parents=True, exist_ok=True)
    return home_dir


def get_images_dir() -> Path:
    """Return the sandboxed image directory ``{home}/CapturedPhotos``.

    The directory is **not** created here; the image store creates it.
    """
    return get_home_dir() / IMAGES_DIRNAME
