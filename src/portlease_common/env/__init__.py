"""Environment variable helpers."""

from . import reader
from .reader import read_bool, read_float, read_int, read_str

__all__ = ["reader", "read_bool", "read_float", "read_int", "read_str"]
