"""
Utilities Package for the Tubely backend.

file_validator:
    Upload presence, size ceiling and media type checks.

logger:
    Structured logging configuration (JSON or plain text), uvicorn integration
    and context-enriched logger adapters.
"""
