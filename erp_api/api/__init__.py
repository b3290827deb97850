"""HTTP layer: Flask blueprints, auth decorators, error handlers.

Services are built once in ``create_app`` and stored in
``app.extensions["erp_api"]``; routes fetch them with :func:`get_service`.
"""
from flask import current_app

EXTENSION_KEY = "erp_api"


def get_service(name: str):
    """Return a service registered by ``create_app`` (e.g. ``"users"``)."""
    return current_app.extensions[EXTENSION_KEY][name]
