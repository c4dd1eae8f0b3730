"""
Structured stdout logging.

Cloud Functions forwards stdout to Cloud Logging, which parses one JSON
object per line and reads the `severity` key.
"""

import json


def log_event(message: str, severity: str = 'INFO', **fields) -> None:
    """Print a single structured log line."""
    entry = {'severity': severity, 'message': message}
    entry.update(fields)
    print(json.dumps(entry, default=str), flush=True)
