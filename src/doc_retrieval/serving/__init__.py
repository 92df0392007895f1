"""
Serving — FastAPI application and AWS Lambda handlers for the retrieval service.

This module exposes document processing, embedding generation and search
over HTTP or as Lambda functions triggered by S3 and API Gateway.
"""
