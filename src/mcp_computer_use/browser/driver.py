"""WebDriver session creation."""

from selenium import webdriver
from selenium.webdriver.chrome.options import Options

from .chrome_launcher import chrome_flags

import logging
logger = logging.getLogger(__name__)


def build_chrome_options(config: dict) -> Options:
    """Chrome options for a chromedriver-managed browser."""
    options = Options()
    browser_path = config.get("browser_path")
    if browser_path:
        options.binary_location = browser_path
    for flag in chrome_flags(config):
        options.add_argument(flag)
    if config.get("undetected"):
        options.add_experimental_option("excludeSwitches", ["enable-automation"])
        options.add_experimental_option("useAutomationExtension", False)
    return options


def create_webdriver(endpoint: str, config: dict) -> webdriver.Remote:
    """
    Open a new browser session on the chromedriver at `endpoint`.

    Blocking; callers run it in a worker thread.
    """
    logger.info("Creating WebDriver session on %s", endpoint)
    driver = webdriver.Remote(command_executor=endpoint, options=build_chrome_options(config))
    if not config.get("headless", True):
        driver.set_window_size(int(config.get("screen_width", 1280)), int(config.get("screen_height", 720)))
    return driver


__all__ = [
    'build_chrome_options',
    'create_webdriver',
]
