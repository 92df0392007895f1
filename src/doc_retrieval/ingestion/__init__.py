"""
Ingestion — text extraction, chunking, and chunk storage.

This module turns an upload notification into stored, overlapping text
chunks and keeps the document's processing status current.
"""
