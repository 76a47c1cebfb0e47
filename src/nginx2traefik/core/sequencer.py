"""Middleware classifier and chain sequencer."""

from nginx2traefik.pacts.types import MiddlewareCategory

# (spec fields, name substrings) per category, checked in category order
_RULES = (
    (MiddlewareCategory.SHORT_CIRCUIT,
     (), ("conditional-return",)),
    (MiddlewareCategory.RESPONSE_HEADERS,
     ("headers",),
     ("cors", "configuration-snippet", "proxy-cookie", "upstream-vhost")),
    (MiddlewareCategory.AUTH,
     ("basicAuth", "forwardAuth"), ()),
    (MiddlewareCategory.REQUEST_TRANSFORM,
     ("replacePath", "replacePathRegex", "stripPrefix", "redirectScheme", "redirectRegex"),
     ("rewrite", "redirect", "bodysize", "proxy-redirect")),
)


def classify_middleware(middleware: dict) -> MiddlewareCategory:
    """Assign a chain category from spec fields and the middleware name."""
    name = ((middleware.get("metadata") or {}).get("name") or "").lower()
    spec = middleware.get("spec") or {}
    for category, fields, substrings in _RULES:
        if any(spec.get(f) is not None for f in fields):
            return category
        if any(s in name for s in substrings):
            return category
    return MiddlewareCategory.OTHER


def sort_middlewares(middlewares: list[dict]) -> list[dict]:
    """Stable sort by category; converter order breaks ties."""
    return sorted(middlewares, key=classify_middleware)
