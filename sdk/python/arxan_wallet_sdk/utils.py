"""
Utility functions for the wallet SDK
"""

import secrets
import time
from decimal import Decimal, InvalidOperation
from typing import Union
from .errors import InvalidInputError
from .models import AXT, MICRO_AXT

DIRECTION_IN = 'in'
DIRECTION_OUT = 'out'


class Utils:
    """Helper utilities for wallet operations"""

    @staticmethod
    def to_atoms(amount: Union[int, str, Decimal], unit: int = AXT) -> int:
        """
        Convert an amount expressed in `unit` to ATOM.

        Floats are rejected so fee arithmetic never picks up rounding drift.

        Args:
            amount: Amount as int, decimal string or Decimal
            unit: ATOM, MICRO_AXT or AXT (default: AXT)

        Returns:
            Amount in ATOM

        Example:
            >>> Utils.to_atoms('1.5', MICRO_AXT)
            1500
        """
        if isinstance(amount, (float, bool)):
            raise ValueError("amount must be int, str or Decimal, not %s" % type(amount).__name__)
        try:
            value = Decimal(amount) * unit
        except InvalidOperation:
            raise ValueError(f"invalid amount: {amount!r}")
        if value < 0:
            raise ValueError(f"amount must not be negative: {amount!r}")
        if value != value.to_integral_value():
            raise ValueError(f"amount is not a whole number of ATOM: {amount!r}")
        return int(value)

    @staticmethod
    def format_axt(atoms: int) -> str:
        """
        Format an ATOM amount as AXT with six fractional digits.

        Example:
            >>> Utils.format_axt(1500)
            '0.001500'
        """
        sign = '-' if atoms < 0 else ''
        whole, frac = divmod(abs(atoms), AXT)
        return f"{sign}{whole}.{frac:06d}"

    @staticmethod
    def format_micro_axt(atoms: int) -> str:
        """Format an ATOM amount as MicroAXT with three fractional digits"""
        sign = '-' if atoms < 0 else ''
        whole, frac = divmod(abs(atoms), MICRO_AXT)
        return f"{sign}{whole}.{frac:03d}"

    @staticmethod
    def new_nonce(nbytes: int = 16) -> str:
        """Random hex nonce for signature envelopes"""
        return secrets.token_hex(nbytes)

    @staticmethod
    def now_seconds() -> int:
        """Current UNIX time in seconds"""
        return int(time.time())

    @staticmethod
    def validate_direction(direction: str) -> str:
        """
        Validate a transaction log direction.

        Returns:
            'in' or 'out'

        Raises:
            InvalidInputError: for any other value
        """
        if direction not in (DIRECTION_IN, DIRECTION_OUT):
            raise InvalidInputError(
                f"invalid transaction direction {direction!r}, expected 'in' or 'out'"
            )
        return direction

    @staticmethod
    def format_identifier(identifier: str, length: int = 16) -> str:
        """
        Format identifier for display (shortened).

        Args:
            identifier: Full identifier
            length: Number of characters to show from start

        Returns:
            Shortened identifier with ellipsis
        """
        if len(identifier) <= length:
            return identifier
        return f"{identifier[:length]}..."
