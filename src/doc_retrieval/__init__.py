"""Document chunking, embedding generation and vector similarity search."""

__version__ = "0.1.0"
