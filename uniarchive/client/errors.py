"""
Client-side error taxonomy.
"""
from typing import Optional

NETWORK_MESSAGE = "Erreur réseau - impossible de contacter le serveur"
TIMEOUT_MESSAGE = "Délai d'attente dépassé - le serveur met trop de temps à répondre"
MALFORMED_MESSAGE = "Réponse invalide du serveur"


class ApiError(Exception):
    """
    A failed API call, with a human-readable (French) message.

    kind is one of: network, timeout, http, malformed.
    """

    def __init__(self, kind: str, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status = status

    @property
    def transient(self) -> bool:
        """Worth retrying: network errors, timeouts and any 5xx."""
        if self.kind in ("network", "timeout"):
            return True
        return self.kind == "http" and self.status is not None and self.status >= 500

    @classmethod
    def network(cls) -> "ApiError":
        return cls("network", NETWORK_MESSAGE)

    @classmethod
    def timeout(cls) -> "ApiError":
        return cls("timeout", TIMEOUT_MESSAGE)

    @classmethod
    def malformed(cls, status: Optional[int] = None) -> "ApiError":
        return cls("malformed", MALFORMED_MESSAGE, status)

    def __repr__(self) -> str:
        return f"ApiError(kind={self.kind!r}, status={self.status!r}, message={self.message!r})"


class QueryCancelled(Exception):
    """The owning page went away; the result must be discarded."""


def is_transient(exc: BaseException) -> bool:
    return isinstance(exc, ApiError) and exc.transient
