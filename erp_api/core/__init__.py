"""Core Business Logic Module

This module provides the ERP business logic, independent of Flask.

Module Structure:
    - dynamodb/               : Single-table key design, request builders, boto3 executor
    - cognito/                : Cognito identity provider adapter (real + local no-op)
    - marketplaces/           : Marketplace OAuth adapters (Mercado Livre)
    - user_service.py         : User workflows (identity account + record)
    - integration_service.py  : Marketplace integration workflows
    - rbac.py                 : Role hierarchy and permission checks
    - tokens.py               : HS256 bearer tokens (PyJWT)
    - validators.py           : Request body / query validation
    - errors.py               : Typed errors carrying an HTTP status
    - models.py               : Roles, enums, User, MarketplaceIntegration, Page

Usage Pattern:
    These modules are NOT auto-imported; import explicitly when needed:
        from erp_api.core.user_service import UserService
        from erp_api.core.dynamodb import DynamoStore, UserRequests
"""
