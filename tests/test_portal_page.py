import time

import pytest
from selenium.common.exceptions import (NoSuchElementException, StaleElementReferenceException,
                                        WebDriverException)

from errors import ClickFailure, ElementNotFound, FormFillFailure, NavigationFailure
from portal_page import PortalPage

LOGIN_URL = "https://portal/login"

TABLE_HTML = """
<table class="table">
  <tr><th>Code</th><th>Description</th><th>Max. hours</th><th>Att. hours</th></tr>
  <tr>
    <td> 18CSC301T </td><td>Compiler Design</td><td>40</td><td>35</td>
    <td>5</td><td>87.50</td><td>0</td><td>87.50</td>
  </tr>
  <tr><td colspan="8">Total</td></tr>
</table>
"""


class StubElement:
    def __init__(self, html="", fail=None, on_click=None):
        self.html = html
        self.fail = fail
        self.on_click = on_click
        self.stale = False
        self.typed = []

    def _maybe_fail(self):
        if self.fail is not None:
            raise self.fail

    def get_attribute(self, name):
        self._maybe_fail()
        return self.html

    @property
    def screenshot_as_png(self):
        self._maybe_fail()
        return b"\x89PNG\r\n\x1a\nstub"

    def clear(self):
        self._maybe_fail()
        self.typed = []

    def send_keys(self, text):
        self._maybe_fail()
        self.typed.append(text)

    def click(self):
        self._maybe_fail()
        if self.on_click is not None:
            self.on_click(self)

    def is_enabled(self):
        if self.stale:
            raise StaleElementReferenceException("element is not attached to the page document")
        return True


class StubDriver:
    """Just enough of a WebDriver for PortalPage, no browser involved"""

    def __init__(self, elements=None, ready_state="complete", fail_get=None):
        self.elements = elements or {}
        self.ready_state = ready_state
        self.fail_get = fail_get
        self.current_url = LOGIN_URL
        self.visited = []

    def get(self, url):
        if self.fail_get is not None:
            raise self.fail_get
        self.visited.append(url)
        self.current_url = url

    def find_element(self, by, selector):
        if selector not in self.elements:
            raise NoSuchElementException(f"no such element: {selector}")
        return self.elements[selector]

    def execute_script(self, script):
        return self.ready_state

    def quit(self):
        pass


def timed(func, *args):
    started = time.monotonic()
    func(*args)
    return time.monotonic() - started


def test_navigate_loads_url():
    driver = StubDriver()
    PortalPage(driver).navigate("https://portal/attendance")
    assert driver.visited == ["https://portal/attendance"]


def test_navigate_failure_is_translated():
    page = PortalPage(StubDriver(fail_get=WebDriverException("net::ERR_NAME_NOT_RESOLVED")))
    with pytest.raises(NavigationFailure):
        page.navigate(LOGIN_URL)


def test_missing_element_is_translated():
    with pytest.raises(ElementNotFound):
        PortalPage(StubDriver()).find_element("img[src*='captchas']")


def test_screenshot_returns_png_bytes():
    page = PortalPage(StubDriver())
    assert page.screenshot(StubElement()).startswith(b"\x89PNG")
    with pytest.raises(ElementNotFound):
        page.screenshot(StubElement(fail=WebDriverException("element not visible")))


def test_fill_types_into_field():
    field = StubElement()
    PortalPage(StubDriver({"#login": field})).fill("#login", "ab1234")
    assert field.typed == ["ab1234"]


@pytest.mark.parametrize("elements", [
    {},
    {"#login": StubElement(fail=WebDriverException("element not interactable"))},
])
def test_fill_failure_is_translated(elements):
    with pytest.raises(FormFillFailure):
        PortalPage(StubDriver(elements)).fill("#login", "ab1234")


@pytest.mark.parametrize("elements", [
    {},
    {"button": StubElement(fail=WebDriverException("element click intercepted"))},
])
def test_click_failure_is_translated(elements):
    with pytest.raises(ClickFailure):
        PortalPage(StubDriver(elements)).click("button")


def test_settle_waits_when_click_changes_nothing():
    # the old page stays "complete" and the button stays attached
    page = PortalPage(StubDriver({"button": StubElement()}))
    page.click("button")
    assert timed(page.settle, 0.6) >= 0.6


def test_settle_returns_once_clicked_element_is_gone():
    def detach(element):
        element.stale = True

    page = PortalPage(StubDriver({"button": StubElement(on_click=detach)}))
    page.click("button")
    assert timed(page.settle, 5) < 1


def test_settle_returns_once_url_changes():
    driver = StubDriver()

    def go_home(element):
        driver.current_url = "https://portal/home"

    driver.elements["button"] = StubElement(on_click=go_home)
    page = PortalPage(driver)
    page.click("button")
    assert timed(page.settle, 5) < 1


def test_settle_after_navigation_only_waits_for_load():
    page = PortalPage(StubDriver())
    assert timed(page.settle, 5) < 1


def test_settle_gives_up_quietly_while_still_loading():
    page = PortalPage(StubDriver(ready_state="loading"))
    assert timed(page.settle, 0.3) >= 0.3


def test_extract_rows_reads_cells_and_markup():
    driver = StubDriver({"table.table": StubElement(html=TABLE_HTML)})
    rows = PortalPage(driver).extract_rows("table.table")

    assert len(rows) == 3
    assert rows[0].cells == []
    assert rows[1].cells == ["18CSC301T", "Compiler Design", "40", "35", "5", "87.50", "0", "87.50"]
    assert rows[1].markup.startswith("<tr>")
    assert "Compiler Design" in rows[1].markup
    assert rows[2].cells == ["Total"]


def test_extract_rows_without_table():
    with pytest.raises(ElementNotFound):
        PortalPage(StubDriver()).extract_rows("table.table")
