import threading

import pytest

from attendance import RawRow
from captcha_store import ChallengeStore
from errors import ElementNotFound
from portal_session import SessionManager

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"captcha"


def course_row(code, max_hours, attended_hours):
    cells = [code, f"{code} title", str(max_hours), str(attended_hours), "0", "0", "0", "0"]
    return RawRow(cells=cells, markup=f"<tr><td>{code}</td></tr>")


class FakePage:
    """Records every call and fails the ones it is told to."""

    def __init__(self):
        self.calls = []
        self.fail = {}
        self.rows = [
            RawRow(cells=[], markup="<tr><th>Code</th></tr>"),
            course_row("18CSC301T", 100, 80),
            course_row("18CSC302J", 100, 60),
        ]
        self.screenshots = 0
        self.empty_screenshot = False
        # when set, the call named by gated_call blocks until the gate opens
        self.gate = None
        self.gated_call = "navigate"

    def _record(self, name, *args):
        if self.gate is not None and name == self.gated_call:
            self.gate.wait()
        self.calls.append((name,) + args)
        if name in self.fail:
            raise self.fail[name]

    def navigate(self, url, wait_for_idle=True):
        self._record("navigate", url)

    def find_element(self, selector):
        self._record("find_element", selector)
        return object()

    def screenshot(self, element):
        self._record("screenshot")
        if self.empty_screenshot:
            return b""
        self.screenshots += 1
        return PNG_BYTES + bytes([self.screenshots])

    def fill(self, selector, text):
        self._record("fill", selector, text)

    def click(self, selector):
        self._record("click", selector)

    def settle(self, timeout):
        self._record("settle", timeout)

    def extract_rows(self, table_selector):
        self._record("extract_rows", table_selector)
        if "table_missing" in self.fail:
            raise ElementNotFound(f"No element matches {table_selector!r}")
        return list(self.rows)

    def quit(self):
        self._record("quit")

    def names(self):
        return [call[0] for call in self.calls]


@pytest.fixture
def page():
    return FakePage()


@pytest.fixture
def store():
    return ChallengeStore()


@pytest.fixture
def manager(page, store):
    mgr = SessionManager(page, store, login_url="https://portal/login",
                         attendance_url="https://portal/attendance",
                         settle_seconds=0.01, operation_timeout=5)
    yield mgr
    if page.gate is not None:
        page.gate.set()
    mgr.shutdown()


@pytest.fixture
def gate():
    return threading.Event()
