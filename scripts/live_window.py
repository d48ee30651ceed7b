"""Run the detector in a local camera window.

Usage:
    uvicorn api.main:app --reload   # (separate, for the HTTP API)
    python scripts/live_window.py [--facing environment]

Press 's' twice to start/stop the camera, 'd' to detect, 'q' to quit.
"""
import argparse
import asyncio
import logging

from detector.config import Settings
from detector.live import run_live_window


def main():
    p = argparse.ArgumentParser()
    p.add_argument("--facing", choices=["user", "environment"], default=None,
                   help="Camera facing (default: PREFERRED_FACING)")
    p.add_argument("--model-dir", default=None, help="Directory holding model.json + metadata.json")
    args = p.parse_args()

    overrides = {"MODEL_DIR": args.model_dir} if args.model_dir else {}
    s = Settings(**overrides)
    logging.basicConfig(level=getattr(logging, s.LOG_LEVEL.upper(), logging.DEBUG))
    asyncio.run(run_live_window(s, facing=args.facing))


if __name__ == "__main__":
    main()
