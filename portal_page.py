import logging
import time

from bs4 import BeautifulSoup
from selenium import webdriver
from selenium.common.exceptions import NoSuchElementException, TimeoutException, WebDriverException
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait
from webdriver_manager.chrome import ChromeDriverManager

import config
from attendance import RawRow
from errors import ClickFailure, DriverStartupError, ElementNotFound, FormFillFailure, NavigationFailure

logger = logging.getLogger(__name__)


def create_driver(headless=config.HEADLESS, use_webdriver_manager=config.USE_WEBDRIVER_MANAGER):
    """Start Chrome with the options that work inside the container"""
    chrome_options = webdriver.ChromeOptions()
    if headless:
        chrome_options.add_argument('--headless=new')
    chrome_options.add_argument('--no-sandbox')
    chrome_options.add_argument('--disable-dev-shm-usage')
    chrome_options.add_argument('--window-size=1280,1024')

    try:
        if use_webdriver_manager:
            logger.info("Installing ChromeDriver through webdriver-manager")
            driver = webdriver.Chrome(service=Service(ChromeDriverManager().install()), options=chrome_options)
        else:
            driver = webdriver.Chrome(options=chrome_options)
    except Exception as e:
        logger.error(f"❌ Chrome initialization failed: {e}")
        raise DriverStartupError(f"Could not start Chrome: {e}") from e

    version = driver.capabilities.get('browserVersion', 'unknown')
    logger.info(f"✅ Chrome initialized successfully (version: {version})")
    apply_timeouts(driver)
    return driver


def apply_timeouts(driver):
    driver.set_page_load_timeout(config.PAGE_LOAD_TIMEOUT)
    driver.set_script_timeout(config.SCRIPT_TIMEOUT)


def _page_is_idle(driver):
    return driver.execute_script("return document.readyState") == "complete"


class PortalPage:
    """
    The one browser tab pointed at the portal.

    Not thread safe. The session manager is the only caller and runs every
    operation on a single worker thread.
    """

    def __init__(self, driver):
        self.driver = driver
        # element clicked last and the URL it was clicked on, until settle() consumes them
        self._clicked = None
        self._clicked_on = None

    def navigate(self, url, wait_for_idle=True):
        logger.info(f"Navigating to {url}")
        try:
            self.driver.get(url)
        except WebDriverException as e:
            raise NavigationFailure(f"Could not load {url}: {e}") from e
        if wait_for_idle:
            try:
                WebDriverWait(self.driver, config.PAGE_LOAD_TIMEOUT).until(_page_is_idle)
            except TimeoutException as e:
                raise NavigationFailure(f"{url} did not finish loading") from e

    def find_element(self, selector):
        try:
            return self.driver.find_element(By.CSS_SELECTOR, selector)
        except NoSuchElementException as e:
            raise ElementNotFound(f"No element matches {selector!r}") from e
        except WebDriverException as e:
            raise ElementNotFound(f"Lookup of {selector!r} failed: {e}") from e

    def screenshot(self, element):
        try:
            return element.screenshot_as_png
        except WebDriverException as e:
            raise ElementNotFound(f"Could not screenshot element: {e}") from e

    def fill(self, selector, text):
        try:
            field = self.driver.find_element(By.CSS_SELECTOR, selector)
            field.clear()
            field.send_keys(text)
        except WebDriverException as e:
            raise FormFillFailure(f"Could not fill {selector!r}: {e}") from e

    def click(self, selector):
        try:
            element = self.driver.find_element(By.CSS_SELECTOR, selector)
            url = self.driver.current_url
            element.click()
        except WebDriverException as e:
            raise ClickFailure(f"Could not click {selector!r}: {e}") from e
        self._clicked = element
        self._clicked_on = url

    def settle(self, timeout):
        """
        Wait for the page to react to the last click and finish loading.

        After a click the old page is still "complete", so first wait until the
        clicked element is gone or the URL has changed. The whole wait is bounded
        by `timeout` seconds; running out is logged, not raised.
        """
        deadline = time.monotonic() + timeout
        clicked, clicked_on = self._clicked, self._clicked_on
        self._clicked = self._clicked_on = None
        try:
            if clicked is not None:
                WebDriverWait(self.driver, timeout).until(EC.any_of(
                    EC.staleness_of(clicked),
                    EC.url_changes(clicked_on),
                ))
            WebDriverWait(self.driver, max(deadline - time.monotonic(), 0)).until(_page_is_idle)
        except TimeoutException:
            logger.warning(f"Page did not settle within {timeout}s, continuing")

    def extract_rows(self, table_selector):
        table = self.find_element(table_selector)
        try:
            html = table.get_attribute("outerHTML")
        except WebDriverException as e:
            raise ElementNotFound(f"Could not read table {table_selector!r}: {e}") from e

        soup = BeautifulSoup(html, "html.parser")
        rows = []
        for tr in soup.find_all("tr"):
            cells = [td.get_text(strip=True) for td in tr.find_all("td")]
            rows.append(RawRow(cells=cells, markup=str(tr)))
        logger.info(f"Read {len(rows)} rows from {table_selector}")
        return rows

    def quit(self):
        try:
            self.driver.quit()
            logger.info("Browser resources cleaned up")
        except WebDriverException as e:
            logger.error(f"Error closing browser: {e}")
