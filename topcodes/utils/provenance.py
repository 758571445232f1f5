from __future__ import annotations

import json
import os
import platform
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

import numpy as np
import scipy


def _now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _library_versions() -> Dict[str, str]:
    from .. import __version__

    return {"topcodes": __version__, "numpy": np.__version__, "scipy": scipy.__version__}


def write_provenance(out_dir: Path, filename: str = "provenance.json", extra: Dict[str, Any] | None = None) -> None:
    """Write a lightweight provenance record to `out_dir/filename`.

    Includes timestamp, Python and library versions, platform, optional
    GIT_SHA env var, and any extra fields provided by the caller (e.g. image
    path, scan params). Safe no-op if the directory is not writeable.
    """
    try:
        out_dir = Path(out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        payload: Dict[str, Any] = {
            "timestamp": _now_iso(),
            "python": sys.version.split()[0],
            "platform": platform.platform(),
            "libraries": _library_versions(),
            "git_sha": os.environ.get("GIT_SHA") or None,
        }
        if extra:
            payload.update(extra)
        (out_dir / filename).write_text(json.dumps(payload, indent=2))
    except (OSError, TypeError, ValueError):
        # provenance must never fail a scan, not even with unserializable extras
        pass


def append_timings(
    out_dir: Path,
    *,
    component: str,
    timings: Dict[str, Any],
    extra: Dict[str, Any] | None = None,
    filename: str = "timings.json",
) -> None:
    """Append a timing record to a JSON list under out_dir/filename.

    Entries look like
      {"timestamp": <ISO>, "component": "scan", "timings": {...}, **extra}

    Best-effort: never raises, and a malformed file is started over.
    """
    try:
        out_dir = Path(out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / filename
        data: List[dict] = []
        if path.exists():
            try:
                cur = json.loads(path.read_text())
                if isinstance(cur, list):
                    data = cur
            except ValueError:
                data = []
        entry: Dict[str, Any] = {
            "timestamp": _now_iso(),
            "component": component,
            "timings": timings,
        }
        if extra:
            entry.update(extra)
        data.append(entry)
        path.write_text(json.dumps(data, indent=2))
    except (OSError, TypeError, ValueError):
        pass
