"""nginx2traefik: convert NGINX Ingress annotations to Traefik CRDs.

Re-exports the public API. Converters can import directly from here or
from nginx2traefik.pacts.
"""

__version__ = "0.1.0"

from nginx2traefik.pacts.types import (  # noqa: E402
    AnnotationStatus, CertificateLookup, CertificateLookupError, ConversionError,
    ConvertContext, ConvertResult, DirectiveConverter, GlobalReport, IngressReport,
)
from nginx2traefik.pacts.ingress import get_ingress_class  # noqa: E402
from nginx2traefik.core.convert import convert, convert_ingress  # noqa: E402

__all__ = [
    "__version__",
    "AnnotationStatus",
    "CertificateLookup",
    "CertificateLookupError",
    "ConversionError",
    "ConvertContext",
    "ConvertResult",
    "DirectiveConverter",
    "GlobalReport",
    "IngressReport",
    "get_ingress_class",
    "convert",
    "convert_ingress",
]
