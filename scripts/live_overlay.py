"""Run live camera overlay.

Usage:
    uvicorn api.main:app --reload  # (separate, for API)
    python scripts/live_overlay.py  # (to see camera overlay window)

Press 'q' to quit the window, 'r' to reset the counters.
"""
import logging

from expressions.config import Settings
from expressions.live import run_live_overlay

if __name__ == '__main__':
    s = Settings()
    logging.basicConfig(level=s.LOG_LEVEL)
    run_live_overlay(s)
