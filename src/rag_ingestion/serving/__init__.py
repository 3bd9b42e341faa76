"""
Serving — FastAPI application for document ingestion.

This module exposes the ingestion pipeline over HTTP so the upload flow
can be deployed as a standalone container.
"""
