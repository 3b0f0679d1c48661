"""Resource loading: the serial/parallel combinator, load strategies and transport."""

from .loader import ResourceLoader
from .markup import html_to_data
from .strategies import LoaderEnv, type_of
from .transport import HttpTransport, build_url

__all__ = [
    "HttpTransport",
    "LoaderEnv",
    "ResourceLoader",
    "build_url",
    "html_to_data",
    "type_of",
]
