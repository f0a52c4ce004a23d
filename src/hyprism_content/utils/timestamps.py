"""Single source of truth for every timestamp the store writes or compares.

All persisted dates use the fixed-width UTC form ``YYYY-MM-DDTHH:MM:SSZ`` so
that plain string comparison orders them chronologically. Dates coming from
elsewhere (directory mtimes, CurseForge ``fileDate`` values, legacy manifests
written with offsets or fractional seconds) are pushed through
:func:`normalize_iso` before they are stored or compared.
"""

import re
from datetime import UTC, datetime
from pathlib import Path

ISO_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
BACKUP_STAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
COMPACT_STAMP_FORMAT = "%Y%m%d%H%M%S"

_BACKUP_STAMP_RE = re.compile(r"(\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2})(?:-\d+)?$")


def utc_now() -> datetime:
    return datetime.now(UTC)


def format_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).strftime(ISO_FORMAT)


def now_iso() -> str:
    return format_iso(utc_now())


def normalize_iso(value: str) -> str:
    """Return *value* in the canonical fixed-width form.

    Naive inputs are taken to be UTC. Empty strings pass through unchanged.

    Raises:
        ValueError: If *value* is not an ISO-8601 timestamp.
    """
    if not value:
        return ""
    dt = datetime.fromisoformat(value.strip())
    return format_iso(dt)


def from_mtime(mtime: float) -> str:
    return format_iso(datetime.fromtimestamp(mtime, UTC))


def backup_stamp(dt: datetime | None = None) -> str:
    return (dt or utc_now()).astimezone(UTC).strftime(BACKUP_STAMP_FORMAT)


def compact_stamp(dt: datetime | None = None) -> str:
    return (dt or utc_now()).astimezone(UTC).strftime(COMPACT_STAMP_FORMAT)


def parse_backup_stamp(name: str) -> str | None:
    """Extract the creation time embedded at the end of a backup directory name."""
    m = _BACKUP_STAMP_RE.search(name)
    if not m:
        return None
    try:
        dt = datetime.strptime(m.group(1), BACKUP_STAMP_FORMAT).replace(tzinfo=UTC)
    except ValueError:
        return None
    return format_iso(dt)


def unique_child(parent: Path, base: str) -> Path:
    """Return ``parent / base``, or ``base-01``, ``base-02``... if already taken.

    The zero-padded suffix sorts after the bare name, so names produced within
    the same second still order chronologically.
    """
    candidate = parent / base
    n = 1
    while candidate.exists():
        candidate = parent / f"{base}-{n:02d}"
        n += 1
    return candidate


def format_size(num_bytes: int) -> str:
    unit = 1024
    if num_bytes < unit:
        return f"{num_bytes} B"
    value = float(num_bytes)
    for prefix in "KMGTPE":
        value /= unit
        if value < unit:
            return f"{value:.1f} {prefix}B"
    return f"{value:.1f} EB"
