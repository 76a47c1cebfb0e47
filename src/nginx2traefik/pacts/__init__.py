"""Public contracts for directive converters."""

from nginx2traefik.pacts.types import (
    AnnotationStatus, ConversionError, ConvertContext, ConvertResult,
    DirectiveConverter, MiddlewareCategory,
)
from nginx2traefik.pacts.ingress import (
    get_annotations, get_ingress_class, has_tls, iter_backend_paths,
    resolve_service_port, tls_entries,
)
from nginx2traefik.pacts.helpers import mw_name, new_middleware, parse_bool, parse_size_bytes, split_and_trim

__all__ = [
    "AnnotationStatus",
    "ConversionError",
    "ConvertContext",
    "ConvertResult",
    "DirectiveConverter",
    "MiddlewareCategory",
    "get_annotations",
    "get_ingress_class",
    "has_tls",
    "iter_backend_paths",
    "resolve_service_port",
    "tls_entries",
    "mw_name",
    "new_middleware",
    "parse_bool",
    "parse_size_bytes",
    "split_and_trim",
]
