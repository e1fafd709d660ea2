"""
Browser factory for creating configured Selenium drivers.
Implements factory pattern for browser creation.
"""

import logging
from typing import Optional

from selenium import webdriver
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from webdriver_manager.chrome import ChromeDriverManager

from ..config import BrowserConfig

logger = logging.getLogger(__name__)


class BrowserFactory:
    """Factory for creating Chrome drivers from a BrowserConfig."""

    @staticmethod
    def create_driver(config: Optional[BrowserConfig] = None) -> webdriver.Chrome:
        """
        Create a Chrome driver, installing the matching chromedriver if needed.

        Args:
            config: Browser settings (defaults when omitted)

        Returns:
            Configured Chrome driver
        """
        config = config or BrowserConfig()
        options = BrowserFactory._get_options(config)

        driver = webdriver.Chrome(
            service=Service(ChromeDriverManager().install()),
            options=options
        )

        BrowserFactory._configure_driver(driver, config)
        logger.info(f"Chrome driver ready (headless={config.headless})")
        return driver

    @staticmethod
    def _get_options(config: BrowserConfig) -> Options:
        """Chrome options for a scraping session."""
        options = Options()

        if config.headless:
            options.add_argument("--headless=new")

        options.add_argument("--no-sandbox")
        options.add_argument("--disable-dev-shm-usage")
        options.add_argument(f"--window-size={config.window_width},{config.window_height}")
        if config.user_agent:
            options.add_argument(f"user-agent={config.user_agent}")
        options.page_load_strategy = config.page_load_strategy

        return options

    @staticmethod
    def _configure_driver(driver: webdriver.Chrome, config: BrowserConfig) -> None:
        """Configure driver with timeouts and window size."""
        driver.set_page_load_timeout(config.page_load_timeout)
        driver.set_window_size(config.window_width, config.window_height)
