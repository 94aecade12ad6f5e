"""Run an end-to-end demo against the simulated cell.

Usage:
    python scripts/demo_flow.py              # 3 targets
    python scripts/demo_flow.py --targets 5

Starts the API on port 8000 in a subprocess, posts targets whose pick time
lies a few seconds in the future, and prints the orchestrator state until
every target has been handled.
"""

import argparse
import json
import signal
import subprocess
import sys
import time
from pathlib import Path
from urllib.error import URLError
from urllib.request import Request, urlopen

PROJECT_ROOT = Path(__file__).resolve().parents[1]
API = "http://localhost:8000"


def wait_for_health(url: str, timeout: float = 15.0) -> bool:
    """Poll the health endpoint until it responds or timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            with urlopen(url, timeout=2) as resp:
                if resp.status == 200:
                    return True
        except (URLError, OSError):
            pass
        time.sleep(0.5)
    return False


def _get(path: str) -> dict:
    with urlopen(API + path, timeout=5) as resp:
        return json.loads(resp.read())


def _post(path: str, body: dict) -> dict:
    req = Request(
        API + path,
        data=json.dumps(body).encode(),
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    with urlopen(req, timeout=5) as resp:
        return json.loads(resp.read())


def _stamped(x: float, y: float, z: float, stamp: float = 0.0) -> dict:
    return {"pose": {"position": {"x": x, "y": y, "z": z}}, "stamp": stamp}


def demo_target(index: int, lead_time: float) -> dict:
    """A target on a conveyor, arriving *lead_time* seconds from now."""
    y = 0.2 * index
    return {
        "approachPose": _stamped(0.5, y, 0.3),
        "pickPose": _stamped(0.5, y, 0.1, stamp=time.time() + lead_time),
        "retreatPose": _stamped(0.5, y, 0.3),
        "placePose": _stamped(-0.5, y, 0.2),
    }


def main() -> None:
    """Launch the backend, feed targets, report outcomes."""
    parser = argparse.ArgumentParser(description="gripflow demo flow")
    parser.add_argument("--targets", type=int, default=3)
    args = parser.parse_args()

    proc = subprocess.Popen(
        [sys.executable, str(PROJECT_ROOT / "scripts" / "run_api.py")],
        cwd=str(PROJECT_ROOT),
    )

    def handle_signal(signum: int, _frame: object) -> None:
        proc.terminate()
        sys.exit(0)

    signal.signal(signal.SIGTERM, handle_signal)

    try:
        print("  Waiting for backend...")
        if not wait_for_health(API + "/health"):
            print("  Backend did not come up within 15s")
            return

        for i in range(args.targets):
            # Later targets need more lead time: each task takes ~6s.
            ack = _post("/targets", demo_target(i, lead_time=3.0 + 7.0 * i))
            print(f"  Queued target {ack['targetId']} ({ack['pending']} pending)")

        while True:
            state = _get("/execution/state")
            print(
                f"  busy={state['busy']} phase={state['currentPhase']} "
                f"pending={state['pending']} done={state['tasksProcessed']}"
            )
            if state["tasksProcessed"] >= args.targets and not state["busy"]:
                break
            time.sleep(1.0)

        print(json.dumps(_get("/analytics/tasks"), indent=2))
    except KeyboardInterrupt:
        print("\n  Shutting down...")
    finally:
        proc.terminate()
        proc.wait(timeout=5)
        print("  Done.")


if __name__ == "__main__":
    main()
