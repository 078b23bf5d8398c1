"""
FreelanceFlow - Gunicorn WSGI Server Configuration
=================================================

Every value can be overridden from the environment. Invoice numbers stay
unique across workers through the database constraint and allocator retry.
"""

import logging
import multiprocessing
import os

IS_PRODUCTION = os.getenv("PRODUCTION") == "true"

logging.basicConfig(
    level=logging.INFO if IS_PRODUCTION else logging.DEBUG,
    format="[%(asctime)s] %(levelname)s gunicorn - %(message)s",
)
logger = logging.getLogger(__name__)


def env_int(name, default):
    return int(os.getenv(name, default))


# =============================================================================
# SERVER
# =============================================================================

bind = [f"0.0.0.0:{env_int('PORT', 8000)}"]
proc_name = "freelanceflow"

# WeasyPrint rendering is CPU bound
workers = env_int("WEB_CONCURRENCY", min(multiprocessing.cpu_count() + 1, 9))
worker_class = "gthread"
threads = env_int("GUNICORN_THREADS", 4)
max_requests = env_int("GUNICORN_MAX_REQUESTS", 1000)
max_requests_jitter = env_int("GUNICORN_MAX_REQUESTS_JITTER", 100)

timeout = env_int("GUNICORN_TIMEOUT", 120)
graceful_timeout = env_int("GUNICORN_GRACEFUL_TIMEOUT", 10)
keepalive = 5

preload_app = True
forwarded_allow_ips = os.getenv("FORWARDED_ALLOW_IPS", "*")
if IS_PRODUCTION:
    secure_scheme_headers = {"X-FORWARDED-PROTO": "https"}


# =============================================================================
# LOGGING
# =============================================================================

accesslog = "-"
errorlog = "-"
loglevel = "info" if IS_PRODUCTION else "debug"
capture_output = True
access_log_format = '%(h)s "%(r)s" %(s)s %(b)s %(D)sus request_id=%({x-request-id}o)s'


# =============================================================================
# HOOKS
# =============================================================================

def when_ready(server):
    logger.info(f"Listening on {server.address} with {workers} workers x {threads} threads")


def post_fork(server, worker):
    import django

    django.setup()
    from django.db import connection

    try:
        connection.ensure_connection()
    except Exception as exc:
        logger.warning(f"Worker {worker.pid} could not open a database connection: {exc}")
    else:
        logger.info(f"Worker {worker.pid} connected to the database")
