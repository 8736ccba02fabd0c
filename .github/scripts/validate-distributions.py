#!/usr/bin/env python3
"""Validate distributions.yaml: schema correctness and manifest reachability."""

from __future__ import annotations

import re
import sys
from pathlib import Path

import requests
import yaml

DISTRIBUTIONS_PATH = Path(__file__).resolve().parents[2] / "wslmgr" / "data" / "distributions.yaml"
MANIFEST_URL = "https://raw.githubusercontent.com/microsoft/WSL/master/distributions/DistributionInfo.json"
GUID_RE = re.compile(r"^\{?[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}\}?$")
REQUEST_TIMEOUT = 30
USER_AGENT = "wsl-distro-manager/catalog-validator (GitHub Actions)"


def load_distributions(path: Path) -> dict:
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


# ── Phase 1: Schema validation (fail-fast) ──────────────────────────


def validate_schema(data: dict, base_dir: Path) -> list[str]:
    errors: list[str] = []

    if not isinstance(data, dict) or "distributions" not in data:
        errors.append("Top-level 'distributions' key is missing")
        return errors

    distributions = data["distributions"]
    if not isinstance(distributions, dict):
        errors.append("'distributions' must be a mapping")
        return errors

    for key, entry in distributions.items():
        if not isinstance(entry, dict):
            errors.append(f"[{key}] entry is not a mapping")
            continue

        if "friendly_name" not in entry:
            errors.append(f"[{key}] missing required field 'friendly_name'")
        elif not isinstance(entry["friendly_name"], str):
            errors.append(f"[{key}] 'friendly_name' must be a string")

        guid = entry.get("terminal_profile_guid")
        if guid is not None and not GUID_RE.match(str(guid)):
            errors.append(f"[{key}] 'terminal_profile_guid' is not a GUID: '{guid}'")

        logo = entry.get("logo")
        if logo is not None and not (base_dir / logo).is_file():
            errors.append(f"[{key}] logo file not found: {logo}")

    return errors


# ── Phase 2: Manifest cross-check (collect-all) ──────────────────────


def fetch_manifest_names(url: str) -> set[str]:
    session = requests.Session()
    session.headers["User-Agent"] = USER_AGENT
    resp = session.get(url, timeout=REQUEST_TIMEOUT)
    resp.raise_for_status()
    payload = resp.json()
    entries = list(payload.get("Distributions") or [])
    for family in (payload.get("ModernDistributions") or {}).values():
        entries.extend(family)
    return {entry["Name"] for entry in entries if isinstance(entry, dict) and entry.get("Name")}


def validate_manifest(data: dict) -> list[str]:
    try:
        manifest_names = fetch_manifest_names(MANIFEST_URL)
    except (requests.RequestException, ValueError) as exc:
        return [f"{exc.__class__.__name__}: {exc} for {MANIFEST_URL}"]
    return [
        f"[{key}] not published in the WSL manifest"
        for key in data["distributions"]
        if key not in manifest_names
    ]


# ── Main ─────────────────────────────────────────────────────────────


def main() -> int:
    print(f"Loading {DISTRIBUTIONS_PATH}")
    data = load_distributions(DISTRIBUTIONS_PATH)

    print("\n=== Phase 1: Schema validation ===")
    schema_errors = validate_schema(data, DISTRIBUTIONS_PATH.parent)
    if schema_errors:
        for e in schema_errors:
            print(f"  ERROR: {e}")
        print(f"\nSchema validation failed with {len(schema_errors)} error(s)")
        return 1
    count = len(data["distributions"])
    print(f"  OK: {count} distributions, all schemas valid")

    print("\n=== Phase 2: Manifest cross-check ===")
    manifest_errors = validate_manifest(data)
    if manifest_errors:
        # Retired releases drop out of the manifest; report without failing.
        for e in manifest_errors:
            print(f"  WARN: {e}")
    else:
        print(f"  OK: all {count} distributions published")

    print("\nAll checks passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
