"""Gunicorn configuration file.

Run with:
    gunicorn -c gunicorn.conf.py

Secrets (JWT_SECRET, COGNITO_CLIENT_SECRET, ML_CLIENT_SECRET) are read by
erp_api.config.settings from /run/secrets first, then the environment; the
post_fork hook only reports which source the worker will use.
"""
import os

wsgi_app = "erp_api.flask_app:create_app()"
bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:5000")
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "30"))
accesslog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()


def post_fork(server, worker):
    """
    Called just after a worker has been forked.

    Refuses to start a worker with AUTH_BYPASS outside LOCAL_MODE: the bypass
    is a local-development switch only.
    """
    local_mode = os.environ.get("LOCAL_MODE", "false").lower() == "true"
    if os.environ.get("AUTH_BYPASS", "false").lower() == "true" and not local_mode:
        worker.log.warning("AUTH_BYPASS=true requires LOCAL_MODE=true (runtime guard)")
        worker.log.info("Forcing AUTH_BYPASS=false")
        os.environ["AUTH_BYPASS"] = "false"

    from pathlib import Path
    secrets_dir = Path("/run/secrets")
    if secrets_dir.exists() and secrets_dir.is_dir():
        secret_files = list(secrets_dir.glob("*"))
        if secret_files:
            worker.log.info(f"Found {len(secret_files)} secrets in /run/secrets")
            return

    worker.log.info("No /run/secrets mount; secrets come from the environment")
