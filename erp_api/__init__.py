"""ERP Backend API package.

To build the Flask app:
    from erp_api.flask_app import create_app

To use the domain services without Flask:
    from erp_api.core.user_service import UserService
    from erp_api.core.integration_service import IntegrationService
"""
# Note: flask_app is not imported here so that scripts/ can use
# erp_api.core without pulling in Flask.
