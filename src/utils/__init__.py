"""Shared utilities for aspectgraph."""

from utils.env_utils import env_float, env_int, env_name, env_value
from utils.uuid_factory import run_id, uuid7

__all__ = [
    "env_float",
    "env_int",
    "env_name",
    "env_value",
    "run_id",
    "uuid7",
]
