# Copyright (c) 2026 Mohammed Hassan. All rights reserved.
# Proprietary and confidential. Unauthorized copying, modification, distribution, or use is prohibited.

"""
Structured logging for Typify.

Every record is rendered as one JSON line (python-json-logger) carrying the
request id and signed-in user id of the request that produced it. When
LOG_SHIP_URL is set, records are also batched to an HTTP ingest endpoint
(Axiom-style: a JSON array POSTed with a Bearer token) from a daemon thread.
"""
import atexit
import contextvars
import json
import logging
import queue
import re
import sys
import threading
from datetime import datetime, timezone

import requests
from pythonjsonlogger import jsonlogger

from .config import settings

SERVICE_NAME = "typify"

request_id_var = contextvars.ContextVar("request_id", default=None)
user_id_var = contextvars.ContextVar("user_id", default=None)

SECRET_KEYS = ("token", "secret", "password", "api_key", "authorization", "cookie")
EMAIL_RE = re.compile(r"([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+\.[A-Za-z]{2,})")

def mask_email(value: str) -> str:
    """kim@example.com -> k***@example.com"""
    return EMAIL_RE.sub(r"\1***@\2", value)

class TypifyJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
        log_record["level"] = record.levelname
        log_record["service_name"] = SERVICE_NAME
        log_record["environment"] = "production" if settings.log_ship_url else "local"

        for name, var in (("request_id", request_id_var), ("user_id", user_id_var)):
            value = var.get()
            if value is not None and name not in log_record:
                log_record[name] = value

        for key, value in list(log_record.items()):
            if not isinstance(value, str):
                continue
            if any(s in key.lower() for s in SECRET_KEYS):
                log_record[key] = "***REDACTED***"
            elif "@" in value:
                log_record[key] = mask_email(value)

class TextFormatter(logging.Formatter):
    """Single-line console output for local runs (LOG_FORMAT=text)."""
    def format(self, record):
        line = super().format(record)
        req_id = request_id_var.get()
        return f"{line} [req={req_id}]" if req_id else line

class HttpShippingHandler(logging.Handler):
    """Queues formatted records and POSTs them in batches from a daemon thread."""

    def __init__(self, url: str, token: str | None = None, batch_size: int = 50, flush_interval: float = 3.0):
        super().__init__()
        self.url = url
        self.token = token
        self.batch_size = batch_size
        self.flush_interval = flush_interval
        self.dropped = 0
        self.queue = queue.Queue(maxsize=10000)
        self._stop = threading.Event()
        self.worker = threading.Thread(target=self._run, name="log-shipper", daemon=True)
        self.worker.start()

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _drain(self, limit: int) -> list:
        batch = []
        while len(batch) < limit:
            try:
                batch.append(self.queue.get_nowait())
            except queue.Empty:
                break
        return batch

    def _run(self):
        while not self._stop.is_set():
            try:
                first = self.queue.get(timeout=self.flush_interval)
            except queue.Empty:
                continue
            self._send([first] + self._drain(self.batch_size - 1))

    def _send(self, batch: list):
        if not batch:
            return
        try:
            requests.post(self.url, headers=self._headers(), json=batch, timeout=5.0)
        except requests.RequestException as e:
            # stderr only; logging here would feed back into this handler
            print(f"log shipping failed ({len(batch)} records): {e}", file=sys.stderr)

    def emit(self, record):
        try:
            entry = json.loads(self.format(record))
        except Exception:
            self.handleError(record)
            return
        try:
            self.queue.put_nowait(entry)
        except queue.Full:
            self.dropped += 1

    def close(self):
        self._stop.set()
        self._send(self._drain(self.queue.qsize()))
        super().close()

def setup_logging():
    root = logging.getLogger()
    root.setLevel(settings.log_level.upper())

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    json_formatter = TypifyJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")

    console = logging.StreamHandler(sys.stdout)
    if settings.log_format == "text":
        console.setFormatter(TextFormatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s"))
    else:
        console.setFormatter(json_formatter)
    root.addHandler(console)

    if settings.log_ship_url:
        shipper = HttpShippingHandler(settings.log_ship_url, settings.log_ship_token, settings.log_ship_batch_size)
        shipper.setFormatter(json_formatter)
        root.addHandler(shipper)
        atexit.register(shipper.close)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

def log_event(event: str, level: str = "info", **fields):
    """Log a named event with structured fields; None values are dropped."""
    logger = logging.getLogger(SERVICE_NAME)
    extra = {k: v for k, v in fields.items() if v is not None}
    extra["event"] = event
    logger.log(logging.getLevelName(level.upper()), event, extra=extra)
