"""
The single portal session shared by every HTTP request.

There is exactly one browser tab logged into the portal. Every operation that
navigates or reads it goes through one worker thread, in the order the
requests arrived, so two requests can never move the page under each other.

    UNAUTHENTICATED --initialize/refresh_challenge--> CHALLENGE_ISSUED
    CHALLENGE_ISSUED --submit_credentials--> AUTHENTICATED
    any failure (except InvalidStateError) --> FAILED
    FAILED --refresh_challenge--> CHALLENGE_ISSUED
"""

import concurrent.futures
import enum
import logging
import threading

import config
from attendance import extract
from errors import ElementNotFound, InvalidStateError, OperationTimeout

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    CHALLENGE_ISSUED = "challenge_issued"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class _Ticket:
    """Tracks one queued operation: did it finish, did its caller stop waiting"""

    def __init__(self):
        self.finished = False
        self.abandoned = False


class SessionManager:
    def __init__(self, page, challenge_store,
                 login_url=config.PORTAL_LOGIN_URL,
                 attendance_url=config.PORTAL_ATTENDANCE_URL,
                 settle_seconds=config.SETTLE_SECONDS,
                 operation_timeout=config.OPERATION_TIMEOUT):
        self.page = page
        self.challenge_store = challenge_store
        self.login_url = login_url
        self.attendance_url = attendance_url
        self.settle_seconds = settle_seconds
        self.operation_timeout = operation_timeout
        self._state = SessionState.UNAUTHENTICATED
        self._ticket_lock = threading.Lock()
        # one worker: operations run one at a time, first come first served
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="portal-session")

    @property
    def state(self):
        return self._state

    def _set_state(self, state):
        if state is not self._state:
            logger.info(f"Session state {self._state.value} -> {state.value}")
        self._state = state

    def _run(self, name, func, *args):
        ticket = _Ticket()
        future = self._executor.submit(self._guarded, ticket, name, func, *args)
        try:
            return future.result(timeout=self.operation_timeout)
        except concurrent.futures.TimeoutError:
            with self._ticket_lock:
                ticket.abandoned = True
                if future.cancel():
                    logger.error(f"{name} timed out after {self.operation_timeout}s while queued, cancelled")
                    self._set_state(SessionState.FAILED)
                elif ticket.finished:
                    self._set_state(SessionState.FAILED)
                else:
                    logger.error(f"{name} timed out after {self.operation_timeout}s, still running on the portal")
            raise OperationTimeout(f"{name} did not finish within {self.operation_timeout}s")

    def _guarded(self, ticket, name, func, *args):
        try:
            return func(*args)
        except InvalidStateError as e:
            logger.warning(f"Rejected {name}: {e}")
            raise
        except Exception as e:
            logger.error(f"{name} failed: {e}")
            self._set_state(SessionState.FAILED)
            raise
        finally:
            with self._ticket_lock:
                ticket.finished = True
                if ticket.abandoned:
                    # the caller already reported a timeout, whatever happened here
                    logger.warning(f"{name} finished after its caller gave up")
                    self._set_state(SessionState.FAILED)

    def _require(self, operation, expected):
        if self._state is not expected:
            raise InvalidStateError(operation, self._state)

    # ====== Operations ======

    def initialize(self):
        """Open the login page and capture the first captcha"""
        return self._run("initialize", self._initialize)

    def refresh_challenge(self):
        """Reload the login page and capture a fresh captcha"""
        return self._run("refresh_challenge", self._refresh_challenge)

    def submit_credentials(self, net_id, password, captcha):
        return self._run("submit_credentials", self._submit_credentials, net_id, password, captcha)

    def fetch_attendance(self):
        return self._run("fetch_attendance", self._fetch_attendance)

    def login_and_fetch(self, net_id, password, captcha):
        """Log in and read the attendance report without letting anything run in between"""
        return self._run("login_and_fetch", self._login_and_fetch, net_id, password, captcha)

    def shutdown(self):
        logger.info("Shutting down portal session")
        self._executor.submit(self.page.quit)
        self._executor.shutdown(wait=True)

    # ====== Worker side ======

    def _initialize(self):
        self.page.navigate(self.login_url)
        return self._capture_challenge()

    def _refresh_challenge(self):
        self.page.navigate(self.login_url)
        return self._capture_challenge()

    def _capture_challenge(self):
        element = self.page.find_element(config.CAPTCHA_SELECTOR)
        image_bytes = self.page.screenshot(element)
        if not image_bytes:
            raise ElementNotFound("Captcha screenshot came back empty")
        challenge = self.challenge_store.put(image_bytes)
        self._set_state(SessionState.CHALLENGE_ISSUED)
        return challenge

    def _submit_credentials(self, net_id, password, captcha):
        self._require("submit_credentials", SessionState.CHALLENGE_ISSUED)
        logger.info(f"Submitting login for {net_id}")
        self.page.fill(config.NETID_SELECTOR, net_id)
        self.page.fill(config.PASSWORD_SELECTOR, password)
        self.page.fill(config.CAPTCHA_INPUT_SELECTOR, captcha)
        self.page.click(config.SUBMIT_SELECTOR)
        self.page.settle(self.settle_seconds)
        self._set_state(SessionState.AUTHENTICATED)

    def _fetch_attendance(self):
        self._require("fetch_attendance", SessionState.AUTHENTICATED)
        self.page.navigate(self.attendance_url)
        self.page.settle(self.settle_seconds)
        rows = self.page.extract_rows(config.ATTENDANCE_TABLE_SELECTOR)
        return extract(rows)

    def _login_and_fetch(self, net_id, password, captcha):
        self._submit_credentials(net_id, password, captcha)
        return self._fetch_attendance()
