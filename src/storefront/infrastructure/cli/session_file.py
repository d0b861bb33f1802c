"""Anonymous CLI sessions stored as small JSON files.

The web front end would hand the cart services its request session; the
CLI stands in for it with a file so an anonymous cart survives between
invocations.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import click

from storefront.domain.model.cart import CartOwner


@contextmanager
def session_from_file(path: Path) -> Iterator[dict[str, Any]]:
    """Yield the session map stored at *path* and write it back afterwards."""
    session = _load_raw(path)
    try:
        yield session
    finally:
        _persist_raw(path, session)


@contextmanager
def cart_owner(user_id: int | None, session_path: Path | None) -> Iterator[CartOwner]:
    """Resolve ``--user`` / ``--session`` into a cart owner."""
    if user_id is not None:
        yield CartOwner.user(user_id)
        return
    if session_path is None:
        raise click.UsageError("Either --user or --session is required")
    with session_from_file(session_path) as session:
        yield CartOwner.anonymous(session)


# --- File helpers ----------------------------------------------------------------


def _load_raw(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    return json.loads(path.read_text(encoding="utf-8") or "{}")


def _persist_raw(path: Path, session: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(session, indent=2) + "\n", encoding="utf-8")
