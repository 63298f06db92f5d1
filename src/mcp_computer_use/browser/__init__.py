"""Driver and browser acquisition: locate, version-match, download, launch."""

from .chrome_executable import (
    resolve_browser_executable,
    resolve_driver_executable,
    parse_version,
    major_version,
    get_browser_version,
)

from .driver import (
    build_chrome_options,
    create_webdriver,
)

from .driver_download import (
    DriverRelease,
    platform_key,
    select_driver_release,
    resolve_driver_release,
    ensure_driver_downloaded,
)

from .process import (
    ManagedProcess,
    ensure_port_free,
    wait_for_port,
    get_free_port,
)

from .chrome_launcher import (
    Acquisition,
    chrome_flags,
    build_chrome_command,
    build_driver_command,
    start_managed_process,
)

__all__ = [
    'resolve_browser_executable',
    'resolve_driver_executable',
    'parse_version',
    'major_version',
    'get_browser_version',
    'build_chrome_options',
    'create_webdriver',
    'DriverRelease',
    'platform_key',
    'select_driver_release',
    'resolve_driver_release',
    'ensure_driver_downloaded',
    'ManagedProcess',
    'ensure_port_free',
    'wait_for_port',
    'get_free_port',
    'Acquisition',
    'chrome_flags',
    'build_chrome_command',
    'build_driver_command',
    'start_managed_process',
]
