"""LLM module: the generative oracle adapter."""

from .oracle import GenerativeOracle, get_oracle, parse_json_object

__all__ = ["GenerativeOracle", "get_oracle", "parse_json_object"]
