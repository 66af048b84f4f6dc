"""HTTP surface of the gateway."""

from .routes import SERVICE_INFO, extract_auth_token, gateway_endpoint, prompt_caching_requested, service_info

__all__ = [
    "SERVICE_INFO",
    "extract_auth_token",
    "gateway_endpoint",
    "prompt_caching_requested",
    "service_info",
]
