"""Cards for Care — FastAPI REST API layer.

This package contains the FastAPI application, Pydantic request/response
models, the prompt builder, and the CORS gate.

Modules
-------
main
    FastAPI application with the route handlers and the ``main()`` CLI
    entry point.
models
    Pydantic models for request validation and response envelopes.
prompt_builder
    Greeting card prompt compilation.
cors
    Origin allow-list middleware and preflight short-circuit.
"""
