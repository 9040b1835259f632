"""Configuration helpers shared across packages."""

from bsbm_common.config.env import merge_env, parse_bool_env

__all__ = ["merge_env", "parse_bool_env"]
