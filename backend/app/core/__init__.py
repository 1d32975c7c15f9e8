# app/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- db: Database configuration and connection management
- errors: Uniform API error kind and the exception translation boundary
- responses: Uniform success envelope
- security: Password hashing and JWT encoding/decoding
"""
