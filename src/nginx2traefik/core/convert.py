"""Conversion pipeline: one Ingress → middlewares, route, TLS options, certificates."""

import fnmatch

from nginx2traefik.core.certificates import resolve_certificates
from nginx2traefik.core.constants import (
    ALL_ANNOTATIONS, CERT_MANAGER_PREFIX, DEFAULT_INGRESS_CLASSES,
    ECOSYSTEM_PREFIXES, NGINX_PREFIX, ROUTE_ANNOTATIONS,
)
from nginx2traefik.core.middlewares import (
    BasicAuthConverter, BodySizeConverter, ConfigurationSnippetConverter,
    CorsConverter, ForwardAuthConverter, GlobalOnlyConverter,
    LimitConnectionsConverter, ProxyBufferingConverter, ProxyBufferSizeConverter,
    ProxyResponseRewriteConverter, ProxyTimeoutsConverter, RateLimitConverter,
    RewriteTargetConverter, ServerSnippetConverter, SSLRedirectConverter,
    UpstreamVhostConverter, WhitelistSourceRangeConverter,
)
from nginx2traefik.core.routes import compile_routes
from nginx2traefik.core.sequencer import sort_middlewares
from nginx2traefik.core.tls import AuthTLSConverter
from nginx2traefik.pacts.ingress import get_ingress_class
from nginx2traefik.pacts.types import (
    CertificateLookup, ConversionError, ConvertContext, ConvertResult, GlobalReport,
)

# Fixed order: it decides the middleware order within a chain category.
_CONVERTERS = [
    RewriteTargetConverter(),
    SSLRedirectConverter(),
    BasicAuthConverter(),
    ForwardAuthConverter(),
    CorsConverter(),
    RateLimitConverter(),
    LimitConnectionsConverter(),
    WhitelistSourceRangeConverter(),
    BodySizeConverter(),
    ProxyBufferingConverter(),
    ProxyBufferSizeConverter(),
    ProxyTimeoutsConverter(),
    UpstreamVhostConverter(),
    ProxyResponseRewriteConverter(),
    GlobalOnlyConverter(),
    AuthTLSConverter(),
    ConfigurationSnippetConverter(),
    ServerSnippetConverter(),
]


def _full_name(ctx: ConvertContext) -> str:
    return f"{ctx.namespace}/{ctx.name}" if ctx.namespace else ctx.name


def _report_unreported(ctx: ConvertContext, keys, message: str) -> None:
    """Mark present keys without an outcome yet as skipped."""
    present = ctx.annotations
    report = ctx.result.ingress_report
    for key in keys:
        if key in present and not report.has(key):
            ctx.report_skipped(key, message)


def _run_directives(ctx: ConvertContext) -> None:
    for converter in _CONVERTERS:
        if not converter.applies(ctx):
            continue
        try:
            ctx.result.middlewares.extend(converter.convert(ctx))
        except ConversionError as exc:
            if exc.aborts_ingress:
                raise
            ctx.warn(f"Ingress {_full_name(ctx)}: {exc}")
            _report_unreported(ctx, converter.annotations, str(exc))


def _compile_route(ctx: ConvertContext) -> None:
    try:
        route = compile_routes(ctx, ctx.result.middlewares)
    except ConversionError as exc:
        ctx.warn(f"Ingress {_full_name(ctx)}: {exc}; no IngressRoute generated")
        _report_unreported(ctx, ROUTE_ANNOTATIONS, str(exc))
        return
    if route is not None:
        ctx.result.ingress_routes.append(route)


def _sweep_unknown(ctx: ConvertContext) -> None:
    """Report annotations no converter owns."""
    ignored_prefixes = ECOSYSTEM_PREFIXES + tuple(ctx.config.get("ignored_annotation_prefixes") or ())
    for key in sorted(ctx.annotations):
        if key in ALL_ANNOTATIONS:
            continue
        if key.startswith(NGINX_PREFIX):
            ctx.report_skipped(key, f"unknown annotation {key} has no Traefik conversion")
        elif key.startswith(CERT_MANAGER_PREFIX):
            ctx.report_ignored(key, f"cert-manager annotation {key} is not used for Certificates")
        elif key.startswith(ignored_prefixes):
            ctx.report_ignored(key)


def convert_ingress(ingress: dict, config: dict | None = None,
                    cert_lookup: CertificateLookup | None = None) -> ConvertResult:
    """Convert one Ingress. Never raises for annotation problems.

    Hard errors stop only the step that raised them; an error flagged
    ``aborts_ingress`` stops the rest of this Ingress. Either way the
    report gets one entry for every recognized annotation present.
    """
    ctx = ConvertContext(ingress=ingress, config=config or {}, cert_lookup=cert_lookup)
    ctx.result.ingress_report.namespace = ctx.namespace
    ctx.result.ingress_report.name = ctx.name

    try:
        _run_directives(ctx)
        ctx.result.middlewares = sort_middlewares(ctx.result.middlewares)
        ctx.result.certificates.extend(resolve_certificates(ctx))
        _compile_route(ctx)
    except ConversionError as exc:
        ctx.warn(f"Ingress {_full_name(ctx)}: conversion aborted: {exc}")
        _report_unreported(ctx, ALL_ANNOTATIONS, f"conversion aborted: {exc}")
        ctx.result.middlewares = sort_middlewares(ctx.result.middlewares)

    _sweep_unknown(ctx)
    return ctx.result


def _is_excluded(ingress: dict, exclude_list: list[str]) -> bool:
    """Match ``name`` or ``namespace/name`` against exclude patterns (wildcards)."""
    meta = ingress.get("metadata") or {}
    name = meta.get("name", "")
    candidates = [name]
    if meta.get("namespace"):
        candidates.append(f"{meta['namespace']}/{name}")
    return any(fnmatch.fnmatch(c, pattern) for c in candidates for pattern in exclude_list)


def select_ingresses(ingresses: list[dict], config: dict) -> list[dict]:
    """Ingresses of a handled class (or no class) that are not excluded."""
    classes = [c.lower() for c in config.get("ingress_classes") or DEFAULT_INGRESS_CLASSES]
    exclude = config.get("exclude") or []
    selected = []
    for ing in ingresses:
        cls = get_ingress_class(ing)
        if cls and cls not in classes:
            continue
        if _is_excluded(ing, exclude):
            continue
        selected.append(ing)
    return selected


def convert(ingresses: list[dict], config: dict | None = None,
            cert_lookup: CertificateLookup | None = None) -> tuple[ConvertResult, GlobalReport]:
    """Main conversion: returns (aggregated result, global report)."""
    config = config or {}
    total = ConvertResult()
    report = GlobalReport()
    for ing in select_ingresses(ingresses, config):
        result = convert_ingress(ing, config, cert_lookup)
        total.absorb(result)
        report.ingresses.append(result.ingress_report)
    return total, report
