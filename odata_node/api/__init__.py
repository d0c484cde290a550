"""
odata_node.api - Optional REST API Gateway
===========================================

This module provides an optional FastAPI-based REST gateway
for running node batches over HTTP.

Usage
-----
>>> from odata_node.api import create_app
>>> app = create_app()
>>> # Run with: uvicorn odata_node.api:app

Or run directly:
>>> python -m odata_node.api

"""

from odata_node.api.gateway import create_app, load_env, ODataGateway

# Load .env before the default app reads its configuration
load_env()

# Create default app instance for uvicorn
app = create_app()

__all__ = [
    "create_app",
    "ODataGateway",
    "app",
]
