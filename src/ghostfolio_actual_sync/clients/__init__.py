"""Gateways to Ghostfolio and Actual Budget."""

from .base import LedgerGateway, SourceGateway
from .actual import ActualClient
from .ghostfolio import GhostfolioClient, GhostfolioSession
from .response_shapes import (
    AccountListShape,
    BareListShape,
    KeyedListShape,
    extract_account_list,
)

__all__ = [
    "LedgerGateway",
    "SourceGateway",
    "ActualClient",
    "GhostfolioClient",
    "GhostfolioSession",
    "AccountListShape",
    "BareListShape",
    "KeyedListShape",
    "extract_account_list",
]
