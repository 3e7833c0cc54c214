"""
Valuation extraction for Ghostfolio account records.
Picks one positive value per account using a fixed field priority.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional
import logging

from ..models.sync import AccountValuation

logger = logging.getLogger(__name__)

# Investment value fields, highest priority first
VALUE_FIELDS = ("value", "valueInBaseCurrency", "marketValue", "currentValue")

# Fields reported when no usable value is found
DIAGNOSTIC_FIELDS = VALUE_FIELDS + ("balanceInBaseCurrency",)

NAME_FIELDS = ("name", "accountName", "id")


@dataclass
class ExtractionResult:
    """Valuations selected from one fetch, plus anything worth reporting."""

    valuations: dict[str, AccountValuation] = field(default_factory=dict)
    diagnostics: list[str] = field(default_factory=list)

    @property
    def values(self) -> dict[str, Decimal]:
        """Account name -> selected value."""
        return {name: v.value for name, v in self.valuations.items()}

    @property
    def is_empty(self) -> bool:
        return not self.valuations


class ValueExtractor:
    """Normalizes heterogeneous Ghostfolio account records into valuations."""

    def __init__(self, value_fields: tuple[str, ...] = VALUE_FIELDS):
        self.value_fields = value_fields

    def normalize(
        self,
        raw_accounts: Iterable[dict[str, Any]],
        interested_names: Iterable[str],
    ) -> ExtractionResult:
        """
        Select a valuation for every interesting account.

        Args:
            raw_accounts: Account records as returned by Ghostfolio
            interested_names: Account names that are mapped to the ledger

        Returns:
            ExtractionResult; accounts without a positive value are omitted
            and described in ``diagnostics``
        """
        wanted = set(interested_names)
        result = ExtractionResult()
        seen_names: list[str] = []

        for record in raw_accounts:
            if not isinstance(record, dict):
                continue

            account_name = resolve_account_name(record)
            seen_names.append(account_name or "unknown")
            if account_name not in wanted:
                continue

            valuation = self._select_value(account_name, record)
            if valuation is None:
                available = {f: record[f] for f in DIAGNOSTIC_FIELDS if f in record}
                self._report(
                    result,
                    f"Account {account_name} found but has zero/invalid investment value. "
                    f"Available fields: {available}",
                )
                continue

            if account_name in result.valuations:
                logger.warning(
                    f"Duplicate Ghostfolio account name '{account_name}'; "
                    f"using the later record ({valuation.value})"
                )
            result.valuations[account_name] = valuation
            logger.debug(
                f"{account_name}: {valuation.value} from {valuation.source_field_used}"
            )

        if result.is_empty and wanted:
            self._report(
                result,
                f"No account values found for any of: {', '.join(sorted(wanted))}. "
                f"Available accounts: {', '.join(seen_names) or 'none'}",
            )

        return result

    def _select_value(
        self, account_name: str, record: dict[str, Any]
    ) -> Optional[AccountValuation]:
        for field_name in self.value_fields:
            value = parse_positive_decimal(record.get(field_name))
            if value is not None:
                return AccountValuation(
                    account_name=account_name,
                    value=value,
                    source_field_used=field_name,
                )
        return None

    @staticmethod
    def _report(result: ExtractionResult, message: str) -> None:
        logger.warning(message)
        result.diagnostics.append(message)


def resolve_account_name(record: dict[str, Any]) -> str:
    """First non-empty of name, accountName, id."""
    for field_name in NAME_FIELDS:
        value = record.get(field_name)
        if value not in (None, ""):
            return str(value)
    return ""


def parse_positive_decimal(raw: Any) -> Optional[Decimal]:
    """
    Parse a raw field value as a strictly positive, finite Decimal.

    Returns:
        Decimal or None for missing, non-numeric, zero, or negative values
    """
    if raw is None or isinstance(raw, bool):
        return None

    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return None

    if not value.is_finite() or value <= 0:
        return None
    return value
