# storefront/errors.py
"""
Eccezioni del core ordini.
Le view le traducono in status HTTP: nessuna deve arrivare al client come 500 "nudo".
"""
from __future__ import annotations


class StorefrontError(Exception):
    """Base per tutti gli errori recuperabili."""


class CartValidationError(StorefrontError):
    """La riga richiesta non corrisponde al catalogo (prodotto/opzioni)."""


class CheckoutValidationError(StorefrontError):
    """Dati di checkout mancanti o malformati: niente viene salvato."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class OrderPersistenceError(StorefrontError):
    """Salvataggio ordine fallito; la transazione è stata annullata."""


class OrderNotFoundError(StorefrontError):
    pass


class InvalidTransitionError(StorefrontError):
    def __init__(self, message: str, current: str | None = None, target: str | None = None):
        super().__init__(message)
        self.current = current
        self.target = target


class ForbiddenActionError(StorefrontError):
    """Il ruolo del chiamante non può invocare questa azione."""
