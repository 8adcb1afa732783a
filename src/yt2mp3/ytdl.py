"""Shared ``yt_dlp`` option building."""

from __future__ import annotations

import os
import shutil
from typing import List, Optional


def build_ydl_options(
    *,
    js_runtime: Optional[str] = None,
    remote_components: Optional[List[str]] = None,
    **extra,
) -> dict:
    opts = {
        "quiet": True,
        "no_warnings": True,
        "noplaylist": True,
        "skip_download": True,
        "cachedir": False,
    }
    opts.update(extra)
    if js_runtime:
        entry = _js_runtime_entry(js_runtime)
        opts["js_runtime"] = entry["name"]
        entry_config = {"path": entry["path"]} if entry.get("path") else {}
        opts["js_runtimes"] = {entry["name"]: entry_config}
    if remote_components:
        opts["remote_components"] = list(remote_components)
    return opts


def _js_runtime_entry(runtime: str) -> dict:
    name = os.path.splitext(os.path.basename(runtime))[0]
    entry = {"name": name}
    if os.path.isabs(runtime):
        entry["path"] = runtime
    else:
        lookup = shutil.which(runtime)
        if lookup:
            entry["path"] = lookup
    return entry
