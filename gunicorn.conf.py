"""
Gunicorn settings for serving the Hugfeed API.

    gunicorn app.main:app -c gunicorn.conf.py

Environment overrides:
  PORT       listen port (default 8000)
  WORKERS    worker processes (default 2)
  LOG_LEVEL  shared with the app's own logging (default INFO)
"""
import os

from app.core.config import settings

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"
workers = int(os.environ.get("WORKERS", "2"))

# ASGI: FastAPI runs under uvicorn workers
worker_class = "uvicorn.workers.UvicornWorker"

# A coach turn may wait COACH_TIMEOUT_SECONDS on the model
timeout = int(settings.COACH_TIMEOUT_SECONDS) + 30
graceful_timeout = 30
keepalive = 5

loglevel = settings.LOG_LEVEL.lower()
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sµs'
