"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from token_gateway.application.pipeline import TokenPipeline


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_pipeline(request: Request) -> TokenPipeline:
    """Provide the pipeline wired at startup"""
    return request.app.state.pipeline
