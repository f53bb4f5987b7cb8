# src/tools/bump_version.py — v1
"""Release helper: bump the semantic version in a version descriptor file.

The file is the JSON document served at the version endpoint. Bumping it is
what makes every open client hard-reset onto the new build.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from staleguard.core.models import VersionDescriptor

logger = logging.getLogger(__name__)

BumpPart = Literal["major", "minor", "patch"]

_SEMVER_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


def bump(version: str, part: BumpPart = "patch") -> str:
    """Return the next version string.

    Raises:
        ValueError: If the version is not MAJOR.MINOR.PATCH.
    """
    match = _SEMVER_RE.match(version.strip())
    if not match:
        raise ValueError(f"Not a semantic version: {version!r}")
    major, minor, patch = (int(g) for g in match.groups())
    if part == "major":
        return f"{major + 1}.0.0"
    if part == "minor":
        return f"{major}.{minor + 1}.0"
    return f"{major}.{minor}.{patch + 1}"


def bump_version_file(
    path: Path, part: BumpPart = "patch", now: datetime | None = None
) -> tuple[str, str]:
    """Bump the version stored in ``path`` and stamp the build time.

    Other keys in the file are preserved.

    Returns:
        (old_version, new_version)
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    descriptor = VersionDescriptor.model_validate(data)
    new_version = bump(descriptor.version, part)

    data["version"] = new_version
    data["build_time"] = (now or datetime.now(timezone.utc)).isoformat()

    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    tmp.replace(path)
    logger.info("Bumped %s: %s -> %s (%s)", path, descriptor.version, new_version, part)
    return descriptor.version, new_version
