from __future__ import annotations

import re
import secrets
import time
from datetime import datetime, timezone
from typing import Iterable, Iterator


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def make_id(prefix: str) -> str:
    """Time-based id with a random suffix, e.g. card-1718000000000-a1b2c3."""
    return f"{prefix}-{int(time.time() * 1000)}-{secrets.token_hex(3)}"


def make_unique_id(prefix: str, existing: Iterable[str]) -> str:
    taken = set(existing)
    nid = make_id(prefix)
    while nid in taken:
        nid = make_id(prefix)
    return nid


def slugify_id(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", str(text or "").strip().lower()).strip("-")


def _suffixes() -> Iterator[str]:
    n = 2
    while True:
        yield str(n)
        n += 1


def unique_slug(base: str, existing: Iterable[str], *, fallback_prefix: str) -> str:
    """Slug of `base`, disambiguated with -2, -3 ... against `existing`."""
    taken = set(existing)
    slug = slugify_id(base) or make_id(fallback_prefix)
    if slug not in taken:
        return slug
    for suf in _suffixes():
        candidate = f"{slug}-{suf}"
        if candidate not in taken:
            return candidate
    raise RuntimeError(f"unable to allocate unique id for {base}")  # pragma: no cover
