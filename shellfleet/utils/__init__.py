"""Utilities for shellfleet."""

from shellfleet.utils.console import ColorfulFormatter
from shellfleet.utils.passwords import generate_password
from shellfleet.utils.shell import join_args, quote_arg
from shellfleet.utils.validation import (
    format_date,
    validate_password,
    validate_port,
    validate_username,
)

__all__ = [
    "ColorfulFormatter",
    "format_date",
    "generate_password",
    "join_args",
    "quote_arg",
    "validate_password",
    "validate_port",
    "validate_username",
]
