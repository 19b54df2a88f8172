"""Shared utilities for reducer estimation."""

from utils.coercion import coerce_bool, coerce_byte_size, coerce_float, coerce_int
from utils.env_utils import env_byte_size, env_float, env_value

__all__ = [
    "coerce_bool",
    "coerce_byte_size",
    "coerce_float",
    "coerce_int",
    "env_byte_size",
    "env_float",
    "env_value",
]
