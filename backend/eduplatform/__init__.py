"""Application package for the educational-services marketplace backend.

This package exposes the service, repository and model modules used by
the FastAPI application built in `main.create_app`. It is intentionally
lightweight; individual modules contain the concrete implementations and
documentation.
"""
