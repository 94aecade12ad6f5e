"""Serve the gripflow API.

Usage:
    python scripts/run_api.py                      # defaults, simulated cell
    python scripts/run_api.py --config configs/default.json --port 8000
"""

import argparse
import logging
import os
from pathlib import Path

import uvicorn

from gripflow.config import CONFIG_ENV_VAR


def main() -> None:
    """Configure logging and run uvicorn."""
    parser = argparse.ArgumentParser(description="gripflow API server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--config", type=Path, help="Orchestrator config JSON")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    if args.config is not None:
        os.environ[CONFIG_ENV_VAR] = str(args.config.resolve())

    uvicorn.run("gripflow.api.app:app", host=args.host, port=args.port, log_level="info")


if __name__ == "__main__":
    main()
