# hooktrace/registry.py

import base64
import hashlib
import sys
import urllib.parse

import requests

from .config import Settings
from .errors import IntegrityError


_settings = Settings()


def fetch_version_metadata(name: str, version: str, registry_url: str = _settings.registry_url, timeout=_settings.timeout) -> dict:
    """Fetch the registry document for name@version."""
    safe = urllib.parse.quote(name, safe="")
    url = f"{registry_url.rstrip('/')}/{safe}/{version}"
    r = requests.get(url, timeout=timeout)
    r.raise_for_status()
    return r.json()


def _digest(path, algo):
    h = hashlib.new(algo)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h


def sri_digest(path: str, algo: str = "sha512") -> str:
    return f"{algo}-" + base64.b64encode(_digest(path, algo).digest()).decode("ascii")


def verify_archive(archive_path: str, name: str, version: str, registry_url: str = _settings.registry_url, timeout=_settings.timeout) -> str:
    """Check archive_path against the digest the registry publishes for name@version.

    Prefers dist.integrity (SRI) and falls back to the legacy sha1 shasum.
    Returns the digest that matched.
    """
    dist = fetch_version_metadata(name, version, registry_url=registry_url, timeout=timeout).get("dist") or {}

    integrity = dist.get("integrity")
    if integrity:
        algo = integrity.split("-", 1)[0]
        if algo not in hashlib.algorithms_available:
            raise IntegrityError(f"Unsupported integrity algorithm '{algo}' for {name}@{version}")
        actual = sri_digest(archive_path, algo)
        if actual != integrity:
            raise IntegrityError(f"Integrity mismatch for {name}@{version}: expected {integrity}, got {actual}")
        print(f"[INFO] Verified {archive_path} ({algo})", file=sys.stderr)
        return actual

    shasum = dist.get("shasum")
    if not shasum:
        raise IntegrityError(f"Registry publishes no digest for {name}@{version}")
    actual = _digest(archive_path, "sha1").hexdigest()
    if actual != shasum:
        raise IntegrityError(f"Shasum mismatch for {name}@{version}: expected {shasum}, got {actual}")
    print(f"[INFO] Verified {archive_path} (sha1)", file=sys.stderr)
    return actual
