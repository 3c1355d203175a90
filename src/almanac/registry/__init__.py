"""registry access: path encoders, transports and the metadata fetcher."""
from .encoders import ENCODERS, PathEncoder, encode_npm_name, encode_plain_name, get_encoder
from .fetcher import MetadataFetcher
from .transports import TRANSPORTS, is_supported_url

__all__ = [
    "ENCODERS",
    "PathEncoder",
    "encode_npm_name",
    "encode_plain_name",
    "get_encoder",
    "MetadataFetcher",
    "TRANSPORTS",
    "is_supported_url",
]
