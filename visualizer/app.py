import logging
import sys
import threading
import time
from collections import deque
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add the package source to the Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from flask import Flask, jsonify, request

from merchant_events.core.state import EngineState
import merchant_events.core.sim as sim
from merchant_events.events.model import EventTriggerResult

logger = logging.getLogger(__name__)

app = Flask(__name__)

DATA_PATH = PROJECT_ROOT / "data"

# Global controller, created on first request
calendar_controller = None


class CalendarController:
    """Drives the engine on a background thread while request threads read it."""

    def __init__(self, state: EngineState, tick_interval_s: float = 0.5, max_history: int = 100):
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread = None
        self._running = False
        self._tick_interval_s = tick_interval_s
        self._state = state
        self._days_run = 0
        self._recent = deque(maxlen=max_history) # serialized TickReports

    def get_state(self) -> EngineState:
        with self._lock:
            return self._state

    def lock(self):
        return self._lock

    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def days_run(self) -> int:
        with self._lock:
            return self._days_run

    def recent(self, limit: int) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._recent)[-limit:]

    def play(self):
        with self._lock:
            self._running = True
            if self._thread is None or not self._thread.is_alive():
                self._stop_event.clear()
                self._thread = threading.Thread(target=self._run_loop, daemon=True)
                self._thread.start()

    def pause(self):
        with self._lock:
            self._running = False

    def stop(self):
        self._stop_event.set()

    def step_once(self):
        with self._lock:
            report = sim.step(self._state)
            self._days_run += 1
            self._recent.append(_report_to_dict(report))

    def _run_loop(self):
        while not self._stop_event.is_set():
            with self._lock:
                if self._running:
                    try:
                        self.step_once()
                    except Exception:
                        self._running = False
                        logger.exception("Calendar step failed in run loop")
            time.sleep(self._tick_interval_s)


def _definition_to_dict(definition) -> Dict[str, Any]:
    return {
        "id": definition.id,
        "name": definition.name,
        "description": definition.description,
        "category": definition.category.value,
        "priority": definition.priority.name.lower(),
        "active": definition.active,
    }


def _result_to_dict(result: EventTriggerResult) -> Dict[str, Any]:
    return {
        "success": result.success,
        "event_id": result.event.id if result.event else None,
        "error": str(result.error) if result.error else None,
        "changes": [effect.changes for effect in result.effects],
        "chain": result.chain_ids(),
    }


def _report_to_dict(report: sim.TickReport) -> Dict[str, Any]:
    return {
        "date": str(report.now),
        "triggered": report.triggered_ids(),
        "log": [{"type": e.type, "event_id": e.event_id, "reason": e.reason} for e in report.log.entries],
    }


def create_controller(seed: int = 42, catalog_path: Optional[Path] = None, config_path: Optional[Path] = None) -> CalendarController:
    state = EngineState(
        seed=seed,
        catalog_path=catalog_path or DATA_PATH / "events.yaml",
        config_path=config_path or DATA_PATH / "frequency.yaml",
    )
    return CalendarController(state)


@app.before_request
def ensure_controller():
    global calendar_controller
    if calendar_controller is None:
        calendar_controller = create_controller()


@app.route('/calendar/state')
def calendar_state():
    state = calendar_controller.get_state()
    with calendar_controller.lock():
        now = state.now
        events = [_definition_to_dict(d) for d in state.registry.all_events()]
    return jsonify({
        "date": str(now),
        "events": events,
        "recent": calendar_controller.recent(10),
        "meta": {
            "running": calendar_controller.is_running(),
            "days_run": calendar_controller.days_run(),
        },
    })


@app.route('/calendar/upcoming')
def calendar_upcoming():
    days = request.args.get("days", default=7, type=int)
    if days < 0:
        return jsonify({"error": "'days' must not be negative"}), 400
    state = calendar_controller.get_state()
    upcoming = state.registry.get_upcoming(state.now, days)
    return jsonify({"date": str(state.now), "days": days, "events": [_definition_to_dict(d) for d in upcoming]})


@app.route('/calendar/notifications')
def calendar_notifications():
    state = calendar_controller.get_state()
    notifications = state.registry.get_notifications(state.now)
    return jsonify({
        "date": str(state.now),
        "notifications": [
            {
                "event_id": n.event_id,
                "event_name": n.event_name,
                "days_until": n.days_until,
                "message": n.message,
            }
            for n in notifications
        ],
    })


@app.route('/calendar/play', methods=['POST'])
def calendar_play():
    calendar_controller.play()
    return jsonify({"status": "playing"})


@app.route('/calendar/pause', methods=['POST'])
def calendar_pause():
    calendar_controller.pause()
    return jsonify({"status": "paused"})


@app.route('/calendar/step', methods=['POST'])
def calendar_step():
    data = request.get_json(silent=True) or {}
    steps = int(data.get("steps", 1))
    steps = max(1, steps)
    for _ in range(steps):
        calendar_controller.step_once()
    return jsonify({
        "status": "stepped",
        "steps": steps,
        "days_run": calendar_controller.days_run(),
        "date": str(calendar_controller.get_state().now),
    })


@app.route('/calendar/trigger/<event_id>', methods=['POST'])
def calendar_trigger(event_id):
    state = calendar_controller.get_state()
    with calendar_controller.lock():
        result = state.dispatcher.trigger(event_id, sim.build_context(state))
    status = 200 if result.event is not None else 404
    return jsonify(_result_to_dict(result)), status


if __name__ == '__main__':
    app.run(debug=True)
