"""Load named filter selections from a YAML file."""

import logging
from typing import List, Optional

import base58
import yaml
from pydantic import BaseModel, Field, field_validator

from models.filters import FilterSelection

logger = logging.getLogger(__name__)

PUBKEY_LENGTH = 32


def check_solana_address(value: str) -> str:
    """Return ``value`` if it is base58 decoding to a 32-byte public key."""
    try:
        decoded = base58.b58decode(value)
    except ValueError:
        raise ValueError(f"'{value}' is not valid base58")
    if len(decoded) != PUBKEY_LENGTH:
        raise ValueError(
            f"'{value}' decodes to {len(decoded)} bytes, expected {PUBKEY_LENGTH}"
        )
    return value


class FilterEntryModel(BaseModel):
    """One entry of the ``filters`` list."""
    label: Optional[str] = Field(default=None, description="Filter name prefix")
    account: Optional[str] = Field(default=None, description="Account address to subscribe to")
    blocks: bool = Field(default=False, description="Subscribe to blocks (implies slots)")
    transactions: bool = Field(default=False, description="Subscribe to non-vote, successful transactions")

    @field_validator("account")
    @classmethod
    def validate_account(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return check_solana_address(value)

    def to_selection(self) -> FilterSelection:
        return FilterSelection(
            account=self.account,
            blocks=self.blocks,
            transactions=self.transactions,
            label=self.label,
        )


class FilterFileModel(BaseModel):
    """Top-level filters file."""
    filters: List[FilterEntryModel] = []


def load_filter_selections(path: str) -> List[FilterSelection]:
    """
    Load filter selections from a YAML file, in file order.

    Example::

        filters:
          - label: pool
            account: 2AXXcN6oN9bBT5owwmTH53C7QHUXvhLeu718Kqt8rvY2
          - blocks: true
    """
    try:
        with open(path, "r") as f:
            config = yaml.safe_load(f) or {}

        parsed = FilterFileModel.model_validate(config)
    except Exception as e:
        logger.error(f"Failed to load filters config: {e}")
        raise

    selections = [entry.to_selection() for entry in parsed.filters]
    logger.info(f"Loaded {len(selections)} filter selections from {path}")
    return selections
