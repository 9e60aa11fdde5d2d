"""
Logging utilities
"""
import traceback
from datetime import datetime


def log(message: str):
    """Print with timestamp."""
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    print(f"[{timestamp}] {message}", flush=True)


def log_exception(message: str):
    """Log a message followed by the traceback of the exception being handled."""
    log(message)
    traceback.print_exc()
