from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from site_tracker.core.config import settings

_SAFE_SEGMENT = re.compile(r"[^a-zA-Z0-9_-]")


@dataclass(frozen=True, order=True)
class SiteKey:
    """Join key for a site; the prefixed and bare spellings both map here."""

    body: str
    prefix: str = settings.site_key_prefix

    @property
    def canonical(self) -> str:
        return f"{self.prefix}{self.body}"

    @property
    def bare(self) -> str:
        return self.body

    def forms(self) -> tuple[str, str]:
        return self.canonical, self.bare

    def __str__(self) -> str:
        return self.canonical


def normalize_site_key(value: str | None, prefix: str | None = None) -> SiteKey | None:
    prefix = settings.site_key_prefix if prefix is None else prefix
    if value is None:
        return None
    cleaned = str(value).strip()
    if prefix and cleaned[: len(prefix)].upper() == prefix.upper():
        cleaned = cleaned[len(prefix):].strip()
    if not cleaned:
        return None
    return SiteKey(body=cleaned, prefix=prefix)


def site_key_for_record(canonical: str | None, bare: str | None) -> SiteKey | None:
    """Key for a planned record from whichever spelling it carries."""
    return normalize_site_key(canonical) or normalize_site_key(bare)


def lookup_forms(keys: Iterable[SiteKey]) -> list[str]:
    """Both spellings of every key, for an ``IN`` filter against stored site ids."""
    forms: set[str] = set()
    for key in keys:
        forms.update(key.forms())
    return sorted(forms)


def digits_of(value: str | None) -> str:
    return re.sub(r"\D", "", value or "")


def safe_storage_segment(value: str) -> str:
    return _SAFE_SEGMENT.sub("_", value)
