"""API route handlers."""

from api.routes import health, epochs, claims, proofs

__all__ = ["health", "epochs", "claims", "proofs"]
