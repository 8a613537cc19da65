from __future__ import annotations

import sys
from pathlib import Path

# Checkout root: the directory that holds billing/, assets/ and settings.json
PROJECT_ROOT = Path(__file__).resolve().parents[2]


def is_frozen() -> bool:
    return bool(getattr(sys, "frozen", False))


def _under(root: Path, rel: str | Path) -> Path:
    # Absolute paths from settings.json or the environment are taken as given
    rel = Path(rel)
    return rel if rel.is_absolute() else root / rel


def base_path() -> Path:
    """Root that read-only assets ship under: the logo and assets/fonts/*.ttf.

    A packaged server unpacks them to sys._MEIPASS; a checkout reads them from
    PROJECT_ROOT.
    """
    if is_frozen():
        meipass = getattr(sys, "_MEIPASS", None)
        if meipass:
            return Path(meipass)
    return PROJECT_ROOT


def resource_path(rel: str | Path) -> Path:
    """Locate a bundled asset such as settings.logo_path ('assets/kk.jpg')."""
    return _under(base_path(), rel)


def user_writable_dir() -> Path:
    """Root for what the server writes at runtime.

    That is settings.json, the uploads/ folder holding bills until cleanup, and
    the data/ folder holding the invoices.xlsx export. A packaged server keeps
    them beside its executable, since the unpacked bundle is temporary.
    """
    if is_frozen():
        return Path(sys.executable).resolve().parent
    return PROJECT_ROOT


def settings_path() -> Path:
    return user_writable_dir() / "settings.json"


def writable_path(rel: str | Path) -> Path:
    """Resolve settings.uploads_dir or settings.data_dir against the writable root."""
    return _under(user_writable_dir(), rel)
