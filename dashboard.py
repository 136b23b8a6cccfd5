"""Flask front end for the body fat calculator."""

import asyncio
import logging
import math
import threading
from concurrent.futures import TimeoutError as FutureTimeout

from flask import Flask, jsonify, render_template, request

import db
from config import BASE_DIR, DASHBOARD_HOST, DASHBOARD_PORT, STORE_KIND
from controller import LOADING, READY, InputStateController, NotReady

log = logging.getLogger(__name__)

PLACEHOLDER = "—"
LABELS = {
    "height_cm": "Height",
    "weight_kg": "Weight",
    "neck_cm": "Neck",
    "abdomen_cm": "Abdomen",
    "waist_cm": "Waist",
    "hip_cm": "Hip",
}

app = Flask(__name__, template_folder=BASE_DIR / "templates")

# The controller lives on its own event loop; request threads hop onto it.
# Both are created on first use.
loop: asyncio.AbstractEventLoop | None = None
controller: InputStateController | None = None
_start_lock = threading.Lock()


def get_loop() -> asyncio.AbstractEventLoop:
    """Return the controller loop, starting its thread if needed."""
    global loop
    with _start_lock:
        if loop is None:
            loop = asyncio.new_event_loop()
            threading.Thread(target=loop.run_forever, name="inputs-loop", daemon=True).start()
        return loop


def run(coro, timeout: float = 5):
    """Run a coroutine on the controller loop and wait for its result."""
    return asyncio.run_coroutine_threadsafe(coro, get_loop()).result(timeout)


def start(store=None) -> InputStateController:
    """Create the session controller and load the saved inputs."""
    global controller
    controller = InputStateController(store or db.open_store(STORE_KIND))
    run(controller.load())
    return controller


def format_num(value) -> str:
    """Render a derived value, or a neutral placeholder if there is none."""
    if value is None or not math.isfinite(value):
        return PLACEHOLDER
    return str(value)


def snapshot() -> dict:
    """Everything the page needs to render."""
    return {
        "state": controller.status,
        "display": controller.display_values(),
        "results": vars(controller.results()),
    }


async def _apply(action: str | None = None, *args) -> dict:
    if action:
        getattr(controller, action)(*args)
    return snapshot()


def _ready() -> bool:
    """Start the controller on first request; True once inputs are loaded."""
    if controller is None:
        start()
    return controller.status == READY


def _change(action: str | None = None, *args):
    try:
        if not _ready():
            return jsonify({"state": LOADING, "error": "Inputs are still loading"}), 503
        return jsonify(run(_apply(action, *args)))
    except NotReady as e:
        return jsonify({"state": LOADING, "error": str(e)}), 503
    except FutureTimeout:
        log.warning("Timed out waiting for the inputs loop")
        return jsonify({"error": "Timed out waiting for inputs"}), 503
    except ValueError as e:
        return jsonify({"error": str(e)}), 400


def _payload() -> dict:
    return request.get_json(silent=True) or {}


@app.route("/")
def index():
    """Render the calculator."""
    try:
        if not _ready():
            return render_template("loading.html"), 503
        data = run(_apply())
    except FutureTimeout:
        log.warning("Timed out waiting for the inputs loop")
        return render_template("loading.html"), 503
    return render_template(
        "index.html",
        display=data["display"],
        results=data["results"],
        labels=LABELS,
        format_num=format_num,
    )


@app.route("/api/state")
def state():
    """Return inputs and derived values as JSON."""
    return _change()


@app.route("/api/edit", methods=["POST"])
def edit():
    """Set one measurement field."""
    data = _payload()
    if not data.get("field"):
        return jsonify({"error": "Field is required"}), 400
    return _change("edit", data["field"], data.get("value"), data.get("unit"))


@app.route("/api/gender", methods=["POST"])
def gender():
    return _change("change_gender", _payload().get("value"))


@app.route("/api/units", methods=["POST"])
def units():
    return _change("change_unit_preference", _payload().get("value"))


@app.route("/api/age", methods=["POST"])
def age():
    return _change("change_age", _payload().get("value"))


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    start()
    try:
        app.run(host=DASHBOARD_HOST, port=DASHBOARD_PORT, debug=False)
    finally:
        run(controller.flush())
        log.info("Stopped")
