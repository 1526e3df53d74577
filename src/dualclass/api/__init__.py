"""Dual Class - FastAPI REST API layer.

This package contains the FastAPI application, Pydantic request/response
models, and the generation pipeline that ties them to the model client.

Modules
-------
main
    FastAPI application with all route handlers and the ``main()`` CLI
    entry point.
models
    Pydantic models for API request and response validation.
orchestrator
    Demo short-circuit, live generation and fixture fallback.
"""
