"""
Embedding — model clients and the idempotent embedding pipeline.
"""
