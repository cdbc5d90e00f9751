"""Live Canvas: FastAPI REST API layer.

This package contains the FastAPI application and the Pydantic
request/response models backing the persistence and generation gateways.

Modules
-------
main
    Application factory with all route handlers and the ``main()`` CLI
    entry point.
models
    Pydantic models for API request and response validation.
"""
