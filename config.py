import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name, default):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# ====== Server ======
PORT = int(os.getenv("PORT", "8080"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

# ====== URLs ======
BASE_URL = "https://sp.srmist.edu.in/srmiststudentportal"
PORTAL_LOGIN_URL = os.getenv("PORTAL_LOGIN_URL", BASE_URL + "/students/loginManager/youLogin.jsp")
PORTAL_ATTENDANCE_URL = os.getenv(
    "PORTAL_ATTENDANCE_URL", BASE_URL + "/students/report/studentAttendanceDetails.jsp"
)

# ====== Selectors ======
CAPTCHA_SELECTOR = os.getenv("CAPTCHA_SELECTOR", "img[src*='captchas']")
NETID_SELECTOR = os.getenv("NETID_SELECTOR", "#login")
PASSWORD_SELECTOR = os.getenv("PASSWORD_SELECTOR", "#passwd")
CAPTCHA_INPUT_SELECTOR = os.getenv("CAPTCHA_INPUT_SELECTOR", "#ccode")
SUBMIT_SELECTOR = os.getenv("SUBMIT_SELECTOR", "button.btn-custom.btn-user.btn-block.lift")
ATTENDANCE_TABLE_SELECTOR = os.getenv("ATTENDANCE_TABLE_SELECTOR", "table.table")

# ====== Timeouts (seconds) ======
SETTLE_SECONDS = float(os.getenv("SETTLE_SECONDS", "3"))
OPERATION_TIMEOUT = float(os.getenv("OPERATION_TIMEOUT", "90"))
PAGE_LOAD_TIMEOUT = float(os.getenv("PAGE_LOAD_TIMEOUT", "60"))
SCRIPT_TIMEOUT = float(os.getenv("SCRIPT_TIMEOUT", "30"))

# ====== Browser ======
HEADLESS = _env_bool("HEADLESS", True)
USE_WEBDRIVER_MANAGER = _env_bool("USE_WEBDRIVER_MANAGER", False)
