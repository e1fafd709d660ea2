"""
Selenium-backed PageAgent driving a Chrome tab.
"""

import logging
import time
from typing import Callable, Dict, Mapping, Optional

from bs4 import BeautifulSoup
from selenium import webdriver
from selenium.common.exceptions import (
    StaleElementReferenceException,
    TimeoutException,
    WebDriverException,
)
from selenium.webdriver.common.by import By
from selenium.webdriver.support.ui import WebDriverWait

from ..exceptions import PageAgentError
from ..extraction.navigation import plan_navigation
from ..extraction.text import parse_html
from .models import FieldSelector, NavigationMechanism, NavigationPlan
from .page_agent import PageAgent

logger = logging.getLogger(__name__)

# Collapsed "see more" controls on product pages
EXPANDABLE_SELECTORS = (
    'button[aria-expanded="false"]',
    '[data-action="showMore"]',
    '[data-action="expand"]',
    'button[aria-controls*="detail"]',
    'button[aria-controls*="spec"]',
    'button[aria-controls*="feature"]',
    'div[data-feature-name*="detail"] button',
    'div[data-feature-name*="spec"] button',
    "#detailBullets_feature_div button",
    "#productDetails_detailBullets_sections1 button",
    "#productDetails_techSpec_sections1 button",
    ".feature-bullets button",
    ".product-facts button",
)


class SeleniumPageAgent(PageAgent):
    """PageAgent over a Selenium Chrome driver (the driver is owned by the caller)."""

    def __init__(
        self,
        driver: webdriver.Chrome,
        poll_interval: float = 0.1,
        expand_click_delay: float = 0.5,
        expand_settle_delay: float = 2.0,
    ):
        self.driver = driver
        self.poll_interval = poll_interval
        self.expand_click_delay = expand_click_delay
        self.expand_settle_delay = expand_settle_delay

    @property
    def current_url(self) -> str:
        try:
            return self.driver.current_url
        except WebDriverException as e:
            raise PageAgentError(f"Cannot read current URL: {e}") from e

    def navigate(self, url: str) -> None:
        logger.info(f"Loading {url}")
        try:
            self.driver.get(url)
        except WebDriverException as e:
            raise PageAgentError(f"Failed to load {url}: {e}") from e

    def document(self) -> BeautifulSoup:
        try:
            return parse_html(self.driver.page_source)
        except WebDriverException as e:
            raise PageAgentError(f"Failed to read page source: {e}") from e

    def query_fields(self, selectors: Mapping[str, FieldSelector]) -> Dict[str, Optional[str]]:
        values: Dict[str, Optional[str]] = {}
        for name, selector in selectors.items():
            try:
                elements = self.driver.find_elements(By.CSS_SELECTOR, selector.css)
                if not elements:
                    values[name] = None
                elif selector.attribute is None:
                    values[name] = elements[0].text.strip()
                else:
                    values[name] = elements[0].get_attribute(selector.attribute)
            except StaleElementReferenceException:
                values[name] = None
            except WebDriverException as e:
                raise PageAgentError(f"Field query '{name}' failed: {e}") from e
        return values

    def trigger_navigation(self, target_page: int) -> Optional[NavigationMechanism]:
        plan = plan_navigation(self.document(), target_page)
        if plan is None:
            return None

        logger.debug(f"Navigating to page {target_page} via {plan.mechanism.value}")
        try:
            if plan.mechanism == NavigationMechanism.PAGINATION_FORM:
                return self._submit_form(plan)
            return self._click(plan)
        except WebDriverException as e:
            raise PageAgentError(f"Navigation to page {target_page} failed: {e}") from e

    def _click(self, plan: NavigationPlan) -> Optional[NavigationMechanism]:
        elements = self.driver.find_elements(By.CSS_SELECTOR, plan.selector)
        if plan.index >= len(elements):
            logger.warning(f"Navigation control vanished: {plan.selector} [{plan.index}]")
            return None
        self.driver.execute_script("arguments[0].click();", elements[plan.index])
        return plan.mechanism

    def _submit_form(self, plan: NavigationPlan) -> Optional[NavigationMechanism]:
        forms = self.driver.find_elements(By.CSS_SELECTOR, plan.selector)
        if not forms:
            return None
        form = forms[0]
        field = form.find_element(By.CSS_SELECTOR, f'input[name="{plan.form_field}"]')
        self.driver.execute_script(
            "arguments[0].value = arguments[1]; arguments[2].submit();",
            field,
            str(plan.target_page),
            form,
        )
        return plan.mechanism

    def wait_for_change(self, predicate: Callable[[], bool], timeout: float) -> bool:
        wait = WebDriverWait(
            self.driver,
            timeout,
            poll_frequency=self.poll_interval,
            ignored_exceptions=(StaleElementReferenceException,),
        )
        try:
            wait.until(lambda _driver: predicate())
            return True
        except TimeoutException:
            return False

    def pause(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)

    def expand_sections(self) -> int:
        """Click every visible expand control, pausing between clicks."""
        logger.info("Expanding product information sections...")
        clicked = 0

        for selector in EXPANDABLE_SELECTORS:
            try:
                buttons = self.driver.find_elements(By.CSS_SELECTOR, selector)
            except WebDriverException as e:
                logger.debug(f"Expand selector {selector} failed: {e}")
                continue

            for button in buttons:
                try:
                    if not button.is_displayed():
                        continue
                    self.driver.execute_script("arguments[0].click();", button)
                    clicked += 1
                except WebDriverException as e:
                    logger.debug(f"Expand click failed for {selector}: {e}")
                    continue
                self.pause(self.expand_click_delay)

        self.pause(self.expand_settle_delay)
        logger.info(f"Expanded {clicked} sections")
        return clicked
