"""
Account-list response shapes returned by different Ghostfolio versions.
Each shape knows how to recognise and unwrap one payload layout.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..utils.exceptions import GatewayError


class AccountListShape(ABC):
    """Abstract base class for account-list payload layouts."""

    name: str = "abstract"

    @abstractmethod
    def extract(self, payload: Any) -> Optional[list[dict[str, Any]]]:
        """
        Unwrap the account records from a payload.

        Args:
            payload: Decoded JSON body

        Returns:
            List of account records, or None if the payload has another shape
        """
        pass


class BareListShape(AccountListShape):
    """``[{...}, {...}]``"""

    name = "bare_list"

    def extract(self, payload: Any) -> Optional[list[dict[str, Any]]]:
        if isinstance(payload, list):
            return payload
        return None


class KeyedListShape(AccountListShape):
    """``{"<key>": [{...}, {...}]}``"""

    def __init__(self, key: str):
        self.key = key
        self.name = f"keyed_list:{key}"

    def extract(self, payload: Any) -> Optional[list[dict[str, Any]]]:
        if isinstance(payload, dict) and isinstance(payload.get(self.key), list):
            return payload[self.key]
        return None


DEFAULT_SHAPES: tuple[AccountListShape, ...] = (
    BareListShape(),
    KeyedListShape("accounts"),
    KeyedListShape("data"),
)


def extract_account_list(
    payload: Any, shapes: tuple[AccountListShape, ...] = DEFAULT_SHAPES
) -> tuple[str, list[dict[str, Any]]]:
    """
    Try each shape in order; the first that recognises the payload wins.

    Returns:
        Tuple of (shape name, account records)

    Raises:
        GatewayError: If no shape matches
    """
    for shape in shapes:
        accounts = shape.extract(payload)
        if accounts is not None:
            return shape.name, accounts

    preview = repr(payload)
    if len(preview) > 200:
        preview = preview[:200] + "..."
    raise GatewayError(f"Unexpected accounts response structure: {preview}")
