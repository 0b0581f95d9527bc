"""Upstream adapters. Each one fetches and normalizes; none of them cache."""

from __future__ import annotations

from kitsuneid.sources.jikan import JikanSource
from kitsuneid.sources.otakudesu import OtakudesuSource, decode_server_token, encode_server_token

__all__ = ["JikanSource", "OtakudesuSource", "decode_server_token", "encode_server_token"]
