"""
Version-matched chromedriver download and cache.

Releases come from the Chrome for Testing JSON endpoints. A driver whose
major version equals the installed browser's major is preferred (newest
first); otherwise the Stable channel's driver is used.

Cache layout:
    <cache_dir>/<version>/chromedriver[.exe]
    <cache_dir>/<version>.lock       (present only while a download runs)
"""

import os
import json
import stat
import shutil
import zipfile
import platform
import tempfile
import urllib.request
from dataclasses import dataclass
from typing import Optional, Tuple

from ..config.paths import cached_driver_path, download_lock_path, driver_executable_name, version_dir
from .. import constants
from ..errors import BinaryNotFound
from ..locking.file_mutex import _file_mutex
from .chrome_executable import major_version

import logging
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DriverRelease:
    """One downloadable chromedriver build."""

    version: str
    url: str


def platform_key() -> str:
    """Chrome for Testing platform identifier for this machine."""
    system = platform.system()
    machine = platform.machine().lower()
    if system == "Windows":
        return "win64" if machine.endswith("64") else "win32"
    if system == "Darwin":
        return "mac-arm64" if machine in ("arm64", "aarch64") else "mac-x64"
    return "linux64"


def _version_key(version: str) -> Tuple[int, ...]:
    return tuple(int(part) for part in version.split(".") if part.isdigit())


def _driver_url(entry: dict, platform_name: str) -> Optional[str]:
    for download in (entry.get("downloads") or {}).get("chromedriver") or []:
        if download.get("platform") == platform_name and download.get("url"):
            return download["url"]
    return None


def select_driver_release(
    browser_version: Optional[str],
    known_good: dict,
    last_known_good: dict,
    platform_name: str,
) -> DriverRelease:
    """
    Pick the chromedriver release for `browser_version`.

    Args:
        browser_version: Installed browser version, or None if unknown
        known_good: Parsed known-good-versions-with-downloads.json
        last_known_good: Parsed last-known-good-versions-with-downloads.json
        platform_name: e.g. 'linux64', 'mac-arm64', 'win64'

    Returns:
        DriverRelease: Newest release sharing the browser's major version,
        or the Stable channel release when there is none

    Raises:
        BinaryNotFound: If neither manifest offers a driver for this platform
    """
    if browser_version:
        major = major_version(browser_version)
        best: Optional[DriverRelease] = None
        for entry in known_good.get("versions") or []:
            version = entry.get("version") or ""
            if not version or major_version(version) != major:
                continue
            url = _driver_url(entry, platform_name)
            if url is None:
                continue
            if best is None or _version_key(version) > _version_key(best.version):
                best = DriverRelease(version=version, url=url)
        if best is not None:
            logger.info("Matched chromedriver %s to browser %s", best.version, browser_version)
            return best
        logger.warning("No chromedriver for browser major %s; falling back to latest stable", major)

    stable = (last_known_good.get("channels") or {}).get("Stable") or {}
    url = _driver_url(stable, platform_name)
    if not stable.get("version") or url is None:
        raise BinaryNotFound(f"No chromedriver download available for platform {platform_name}.")
    return DriverRelease(version=stable["version"], url=url)


def fetch_json(url: str, timeout: Optional[float] = None) -> dict:
    """GET a JSON document."""
    timeout = constants.HTTP_TIMEOUT_SECS if timeout is None else timeout
    with urllib.request.urlopen(url, timeout=timeout) as resp:
        return json.load(resp)


def resolve_driver_release(browser_version: Optional[str], platform_name: Optional[str] = None) -> DriverRelease:
    """Fetch the manifests and select a release. The stable manifest is fetched only when needed."""
    platform_name = platform_name or platform_key()
    known_good = fetch_json(constants.KNOWN_GOOD_VERSIONS_URL) if browser_version else {}
    try:
        return select_driver_release(browser_version, known_good, {}, platform_name)
    except BinaryNotFound:
        return select_driver_release(None, {}, fetch_json(constants.LAST_KNOWN_GOOD_URL), platform_name)


def download_file(url: str, dest: str, timeout: Optional[float] = None) -> None:
    """Stream `url` into `dest`."""
    timeout = constants.HTTP_TIMEOUT_SECS if timeout is None else timeout
    logger.info("Downloading %s", url)
    with urllib.request.urlopen(url, timeout=timeout) as resp, open(dest, "wb") as out:
        shutil.copyfileobj(resp, out)


def extract_driver(archive: str, dest_dir: str, exe_name: str) -> str:
    """
    Extract the archive member whose base name is `exe_name` into `dest_dir`.

    Works for flat archives and for the nested 'chromedriver-<platform>/' layout.
    The file is written under a temporary name and renamed into place, so a
    present driver path always means a complete binary.
    """
    with zipfile.ZipFile(archive) as zf:
        member = next(
            (m for m in zf.infolist() if not m.is_dir() and os.path.basename(m.filename) == exe_name),
            None,
        )
        if member is None:
            raise BinaryNotFound(f"{exe_name} not found in archive {archive}")

        target = os.path.join(dest_dir, exe_name)
        fd, tmp = tempfile.mkstemp(prefix=f".{exe_name}.", dir=dest_dir)
        try:
            with os.fdopen(fd, "wb") as out, zf.open(member) as src:
                shutil.copyfileobj(src, out)
            mode = os.stat(tmp).st_mode
            os.chmod(tmp, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH | stat.S_IRUSR)
            os.replace(tmp, target)
        except BaseException:
            try:
                os.remove(tmp)
            except FileNotFoundError:
                pass
            raise
    return target


def ensure_driver_downloaded(release: DriverRelease, cache_dir: str) -> str:
    """
    Return a cached chromedriver for `release`, downloading it if necessary.

    The per-version lock is held for the whole download and extraction, and
    the "already cached" check happens only after the lock is held, so
    concurrent servers targeting the same version download it once.
    """
    exe_name = driver_executable_name()
    target = cached_driver_path(cache_dir, release.version)

    with _file_mutex(
        download_lock_path(cache_dir, release.version),
        stale_secs=constants.DOWNLOAD_LOCK_STALE_SECS,
        wait_timeout=constants.DOWNLOAD_LOCK_WAIT_SECS,
    ):
        if os.path.isfile(target):
            logger.debug("Using cached chromedriver %s", target)
            return target

        dest_dir = version_dir(cache_dir, release.version)
        os.makedirs(dest_dir, exist_ok=True)
        fd, archive = tempfile.mkstemp(prefix="chromedriver-", suffix=".zip", dir=dest_dir)
        os.close(fd)
        try:
            download_file(release.url, archive)
            extract_driver(archive, dest_dir, exe_name)
        finally:
            try:
                os.remove(archive)
            except FileNotFoundError:
                pass

    logger.info("Installed chromedriver %s at %s", release.version, target)
    return target


__all__ = [
    'DriverRelease',
    'platform_key',
    'select_driver_release',
    'fetch_json',
    'resolve_driver_release',
    'download_file',
    'extract_driver',
    'ensure_driver_downloaded',
]
