from flask import Flask, request, jsonify, render_template, send_file
from flask_cors import CORS
import io
import os
import sys
import logging
from datetime import datetime, timezone

import psutil

import config
from attendance import summary
from captcha_store import ChallengeStore, ChallengeNotFound
from errors import PortalError, SessionNotStarted
from portal_page import PortalPage, create_driver
from portal_session import SessionManager

# Configure logging
logging.basicConfig(level=config.LOG_LEVEL,
                   format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)
CORS(app, origins=config.CORS_ORIGINS.split(","))

# The one captcha slot and the one portal session, shared by every request
challenge_store = ChallengeStore()
session_manager = None


def get_session_manager():
    if session_manager is None:
        raise SessionNotStarted("Portal session has not been started, run the server with main()")
    return session_manager


@app.route("/", methods=["GET"])
def login_page():
    """Login form with the current captcha"""
    return render_template("login.html", ts=challenge_store.generation)


@app.route("/captcha.jpg", methods=["GET"])
def captcha_image():
    """Serve the most recently captured captcha"""
    try:
        challenge = challenge_store.get()
    except ChallengeNotFound:
        logger.warning("Captcha requested before one was captured")
        return "CAPTCHA image not found", 404

    response = send_file(
        io.BytesIO(challenge.image_bytes),
        mimetype=challenge.content_type,
        etag=f"captcha-{challenge.generation}",
        last_modified=challenge.captured_at,
        max_age=0,
        conditional=True,
    )
    response.headers["Cache-Control"] = "no-cache"
    return response


@app.route("/reload_captcha", methods=["POST"])
def reload_captcha():
    """Reload the portal login page and capture a new captcha"""
    try:
        challenge = get_session_manager().refresh_challenge()
        logger.info(f"Captcha reloaded (generation {challenge.generation})")
        return "", 200
    except PortalError as e:
        logger.error(f"Captcha reload error: {str(e)}")
        return "Failed to reload SRM page", 500


@app.route("/submit_login", methods=["POST"])
def submit_login():
    """Log in with the submitted form and show the attendance report"""
    netid = request.form.get("netid", "").strip()
    password = request.form.get("password", "")
    captcha = request.form.get("captcha", "").strip()

    if not netid or not password or not captcha:
        return "Invalid form data: netid, password and captcha are required", 400

    try:
        records = get_session_manager().login_and_fetch(netid, password, captcha)
    except PortalError as e:
        logger.error(f"Login/attendance error for {netid}: {str(e)}")
        return f"Could not fetch attendance: {str(e)}", 500

    return render_template("attendance.html", netid=netid, records=records, totals=summary(records))


@app.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint for load balancers"""
    state = session_manager.state.value if session_manager else "not_started"
    return jsonify({
        "status": "healthy" if session_manager else "starting",
        "session_state": state,
        "captcha_generation": challenge_store.generation,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "memory_usage": get_memory_usage()
    }), 200


def get_memory_usage():
    """Get memory usage of the current process"""
    memory_info = psutil.Process(os.getpid()).memory_info()
    return {
        "rss_mb": memory_info.rss / (1024 * 1024),
        "vms_mb": memory_info.vms / (1024 * 1024)
    }


def start_session():
    """Start Chrome, open the portal and capture the first captcha"""
    global session_manager

    page = PortalPage(create_driver())
    session_manager = SessionManager(page, challenge_store)
    try:
        session_manager.initialize()
    except PortalError:
        session_manager.shutdown()
        raise
    return session_manager


def main():
    try:
        start_session()
    except PortalError as e:
        logger.critical(f"Could not start portal session: {e}")
        sys.exit(1)

    logger.info(f"Server running at http://localhost:{config.PORT}")
    try:
        app.run(host="0.0.0.0", port=config.PORT, threaded=True)
    finally:
        session_manager.shutdown()


if __name__ == "__main__":
    main()
