from .cancellation import raise_if_cancelled, run_cancellable
from .content_id import extract_content_id
from .headers import DEFAULT_USER_AGENT, get_headers, headers_with_referer
from .http_fetch import HttpFetcher, build_http_client
from .retry_transport import RetryTransport

__all__ = [
    "DEFAULT_USER_AGENT",
    "HttpFetcher",
    "RetryTransport",
    "build_http_client",
    "extract_content_id",
    "get_headers",
    "headers_with_referer",
    "raise_if_cancelled",
    "run_cancellable",
]
