"""Primer payment processor integration."""

from .client import ChargeResponse, LineItem, PrimerGatewayClient

__all__ = ["PrimerGatewayClient", "ChargeResponse", "LineItem"]
