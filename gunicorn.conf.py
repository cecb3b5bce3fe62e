# Gunicorn configuration for the worship calendar service
#
# Calendar regeneration is a single upsert per year, so workers can run in
# parallel. Rate-limit counters are per process unless RATELIMIT_STORAGE_URI
# points at shared storage.
import os

workers = int(os.environ.get("WEB_CONCURRENCY", "2"))
bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8080")
timeout = int(os.environ.get("GUNICORN_TIMEOUT_SECONDS", "60"))
graceful_timeout = int(os.environ.get("GUNICORN_GRACEFUL_TIMEOUT_SECONDS", "30"))
wsgi_app = "run:app"


def post_fork(server, worker):
    server.log.info("Worker spawned (pid: %s).", worker.pid)
