"""Directive converters: NGINX annotations → Traefik Middleware documents.

Each converter owns a fixed set of annotation keys. ``convert`` returns the
middlewares it produced (the pipeline appends them to the result) and records
exactly one report entry for every owned key present on the Ingress.
"""

import re

from nginx2traefik.core.constants import (
    AUTH_REALM, AUTH_SECRET, AUTH_TYPE, AUTH_URL,
    CLIENT_HEADER_BUFFER_SIZE, CONFIGURATION_SNIPPET,
    CORS_ALLOW_CREDENTIALS, CORS_ALLOW_HEADERS, CORS_ALLOW_METHODS,
    CORS_ALLOW_ORIGIN, CORS_EXPOSE_HEADERS, CORS_MAX_AGE,
    DEFAULT_BURST_MULTIPLIER, ENABLE_CORS, ENABLE_OPENTELEMETRY,
    ENABLE_OPENTRACING, FORCE_SSL_REDIRECT, LARGE_CLIENT_HEADER_BUFFERS,
    LIMIT_BURST_MULTIPLIER, LIMIT_CONNECTIONS, LIMIT_RPM, LIMIT_RPS,
    PROXY_BODY_SIZE, PROXY_BUFFER_SIZE, PROXY_BUFFERING, PROXY_COOKIE_PATH,
    PROXY_READ_TIMEOUT, PROXY_REDIRECT_FROM, PROXY_REDIRECT_TO,
    PROXY_SEND_TIMEOUT, REWRITE_TARGET, SERVER_SNIPPET, SERVICE_UPSTREAM,
    SSL_REDIRECT, UNDERSCORES_IN_HEADERS, UPSTREAM_VHOST,
    WHITELIST_SOURCE_RANGE,
)
from nginx2traefik.core.snippet import SNIPPET_SKIPPED_WARNING, parse_configuration_snippet
from nginx2traefik.pacts.helpers import (
    new_middleware, parse_bool, parse_size_bytes, split_and_trim,
)
from nginx2traefik.pacts.ingress import has_tls
from nginx2traefik.pacts.types import ConversionError, DirectiveConverter

# $1, $2 ... capture group references in rewrite-target
_CAPTURE_REF_RE = re.compile(r"\$\d")

ENTRYPOINT_REDIRECT_WARNING = (
    "IngressRoute already uses entryPoints=[websecure] due to spec.tls; "
    "configure HTTP→HTTPS redirect via Traefik static config "
    "(entryPoints.web.http.redirections.entryPoint.to=websecure) "
    "or create a separate IngressRoute on the web entryPoint with this middleware"
)


def _positive_int(value: str) -> int | None:
    v = value.strip()
    if not v.isdigit() or int(v) <= 0:
        return None
    return int(v)


class RewriteTargetConverter(DirectiveConverter):
    """rewrite-target → replacePathRegex anchored at ``^(.*)``."""
    name = "rewrite-target"
    annotations = (REWRITE_TARGET,)

    def convert(self, ctx):
        target = ctx.annotations[REWRITE_TARGET]
        mw = new_middleware(ctx, "rewrite", {
            "replacePathRegex": {"regex": "^(.*)", "replacement": target},
        })
        if _CAPTURE_REF_RE.search(target):
            msg = (f"rewrite-target {target!r} references path regex capture groups; "
                   f"review replacePathRegex of {mw['metadata']['name']}")
            ctx.warn(msg)
            ctx.report_warning(REWRITE_TARGET, msg)
        else:
            ctx.report_converted(REWRITE_TARGET)
        return [mw]


class SSLRedirectConverter(DirectiveConverter):
    """ssl-redirect / force-ssl-redirect → redirectScheme (HTTP only)."""
    name = "ssl-redirect"
    annotations = (SSL_REDIRECT, FORCE_SSL_REDIRECT)

    def convert(self, ctx):
        ann = ctx.annotations
        present = [k for k in self.annotations if k in ann]

        if not any(parse_bool(ann[k]) for k in present):
            for k in present:
                ctx.report_skipped(k, f"{k} is not set to true")
            return []

        # With spec.tls the route only listens on websecure; redirecting
        # there is a no-op, it belongs on the web entry point.
        if has_tls(ctx.ingress):
            ctx.warn(ENTRYPOINT_REDIRECT_WARNING)
            for k in present:
                ctx.report_skipped(k, ENTRYPOINT_REDIRECT_WARNING)
            return []

        for k in present:
            ctx.report_converted(k)
        return [new_middleware(ctx, "https-redirect", {
            "redirectScheme": {"scheme": "https", "permanent": True},
        })]


class BasicAuthConverter(DirectiveConverter):
    """auth-type=basic + auth-secret + auth-realm → basicAuth."""
    name = "basic-auth"
    annotations = (AUTH_TYPE, AUTH_SECRET, AUTH_REALM)

    def convert(self, ctx):
        ann = ctx.annotations
        present = [k for k in self.annotations if k in ann]

        if AUTH_TYPE not in ann:
            for k in present:
                ctx.report_ignored(k, f"{k} has no effect without {AUTH_TYPE}")
            return []

        auth_type = ann[AUTH_TYPE].strip().lower()
        if auth_type != "basic":
            msg = f"auth-type {auth_type!r} is not supported by Traefik"
            ctx.warn(msg)
            for k in present:
                ctx.report_skipped(k, msg)
            return []

        secret_ref = ann.get(AUTH_SECRET, "").strip()
        if not secret_ref:
            msg = "auth-type=basic requires auth-secret"
            ctx.warn(msg)
            for k in present:
                ctx.report_skipped(k, msg)
            return []

        secret_ns, _, secret = secret_ref.rpartition("/")
        spec = {"secret": secret}
        if ann.get(AUTH_REALM):
            spec["realm"] = ann[AUTH_REALM]
        if secret_ns and secret_ns != ctx.namespace:
            ctx.warn(f"auth-secret {secret_ref} is in another namespace; Traefik basicAuth "
                     f"only reads secrets from the middleware namespace")
        ctx.warn(f"basicAuth secret {secret} must contain a 'users' key "
                 f"(NGINX reads 'auth'); verify the secret before switching traffic")
        for k in present:
            ctx.report_converted(k)
        return [new_middleware(ctx, "basicauth", {"basicAuth": spec})]


class ForwardAuthConverter(DirectiveConverter):
    """auth-url → forwardAuth."""
    name = "forward-auth"
    annotations = (AUTH_URL,)

    def convert(self, ctx):
        url = ctx.annotations[AUTH_URL].strip()
        if not url:
            ctx.report_ignored(AUTH_URL, "empty auth-url")
            return []
        if "$" in url:
            msg = f"auth-url {url!r} uses NGINX variables which Traefik cannot expand"
            ctx.warn(msg)
            ctx.report_warning(AUTH_URL, msg)
        else:
            ctx.report_converted(AUTH_URL)
        return [new_middleware(ctx, "forwardauth", {"forwardAuth": {"address": url}})]


class CorsConverter(DirectiveConverter):
    """enable-cors + cors-* → headers middleware ``<ingress>-cors``.

    A malformed cors-max-age aborts the whole Ingress.
    """
    name = "cors"
    annotations = (
        ENABLE_CORS, CORS_ALLOW_ORIGIN, CORS_ALLOW_METHODS, CORS_ALLOW_HEADERS,
        CORS_ALLOW_CREDENTIALS, CORS_MAX_AGE, CORS_EXPOSE_HEADERS,
    )

    _LIST_FIELDS = (
        (CORS_ALLOW_ORIGIN, "accessControlAllowOriginList"),
        (CORS_ALLOW_METHODS, "accessControlAllowMethods"),
        (CORS_ALLOW_HEADERS, "accessControlAllowHeaders"),
        (CORS_EXPOSE_HEADERS, "accessControlExposeHeaders"),
    )

    def convert(self, ctx):
        ann = ctx.annotations
        present = [k for k in self.annotations if k in ann]

        if not parse_bool(ann.get(ENABLE_CORS)):
            for k in present:
                ctx.report_ignored(k, "CORS is not enabled (enable-cors is not true)")
            return []

        headers = {}
        if CORS_MAX_AGE in ann:
            raw = ann[CORS_MAX_AGE].strip()
            try:
                headers["accessControlMaxAge"] = int(raw)
            except ValueError:
                raise ConversionError(
                    CORS_MAX_AGE, f"invalid cors-max-age value {raw!r}: not an integer",
                    aborts_ingress=True) from None
        for key, field_name in self._LIST_FIELDS:
            values = split_and_trim(ann.get(key, ""))
            if values:
                headers[field_name] = values
        if parse_bool(ann.get(CORS_ALLOW_CREDENTIALS)):
            headers["accessControlAllowCredentials"] = True

        for k in present:
            ctx.report_converted(k)
        return [new_middleware(ctx, "cors", {"headers": headers})]


class RateLimitConverter(DirectiveConverter):
    """limit-rps / limit-rpm → one rateLimit middleware each.

    burst = rate × multiplier; the multiplier comes from
    limit-burst-multiplier, else config ``burst_multiplier``.
    """
    name = "rate-limit"
    annotations = (LIMIT_RPS, LIMIT_RPM, LIMIT_BURST_MULTIPLIER)

    def _multiplier(self, ctx) -> int:
        default = ctx.config.get("burst_multiplier", DEFAULT_BURST_MULTIPLIER)
        raw = ctx.annotations.get(LIMIT_BURST_MULTIPLIER)
        if raw is None:
            return default
        value = _positive_int(raw)
        if value is None:
            msg = (f"invalid limit-burst-multiplier value {raw!r}, "
                   f"using default multiplier {default}")
            ctx.warn(msg)
            ctx.report_warning(LIMIT_BURST_MULTIPLIER, msg)
            return default
        return value

    def convert(self, ctx):
        ann = ctx.annotations
        multiplier = self._multiplier(ctx)
        middlewares = []

        for key, suffix, period in ((LIMIT_RPS, "ratelimit", None),
                                    (LIMIT_RPM, "ratelimit", "1m")):
            if key not in ann:
                continue
            average = _positive_int(ann[key])
            if average is None:
                msg = f"invalid {key.rsplit('/', 1)[-1]} value {ann[key]!r}, no rate limit generated"
                ctx.warn(msg)
                ctx.report_warning(key, msg)
                continue
            spec = {"average": average, "burst": average * multiplier}
            if period:
                spec["period"] = period
                # both rates present: keep names distinct
                if middlewares:
                    suffix = "ratelimit-rpm"
            middlewares.append(new_middleware(ctx, suffix, {"rateLimit": spec}))
            ctx.report_converted(key)

        if LIMIT_BURST_MULTIPLIER in ann and not ctx.result.ingress_report.has(LIMIT_BURST_MULTIPLIER):
            if middlewares:
                ctx.report_converted(LIMIT_BURST_MULTIPLIER)
            else:
                ctx.report_ignored(LIMIT_BURST_MULTIPLIER, "no rate limit to apply the multiplier to")
        return middlewares


class LimitConnectionsConverter(DirectiveConverter):
    """limit-connections → inFlightReq keyed by client IP."""
    name = "limit-connections"
    annotations = (LIMIT_CONNECTIONS,)

    def convert(self, ctx):
        raw = ctx.annotations[LIMIT_CONNECTIONS]
        amount = _positive_int(raw)
        if amount is None:
            msg = f"invalid limit-connections value: {raw}"
            ctx.warn(msg)
            ctx.report_warning(LIMIT_CONNECTIONS, msg)
            return []
        ctx.report_converted(LIMIT_CONNECTIONS)
        return [new_middleware(ctx, "inflightreq", {
            "inFlightReq": {"amount": amount, "sourceCriterion": {"ipStrategy": {}}},
        })]


class WhitelistSourceRangeConverter(DirectiveConverter):
    """whitelist-source-range → ipAllowList."""
    name = "whitelist-source-range"
    annotations = (WHITELIST_SOURCE_RANGE,)

    def convert(self, ctx):
        ranges = split_and_trim(ctx.annotations[WHITELIST_SOURCE_RANGE])
        if not ranges:
            ctx.report_ignored(WHITELIST_SOURCE_RANGE, "empty source range list")
            return []
        ctx.report_converted(WHITELIST_SOURCE_RANGE)
        return [new_middleware(ctx, "ipallowlist", {"ipAllowList": {"sourceRange": ranges}})]


class BodySizeConverter(DirectiveConverter):
    """proxy-body-size → buffering.maxRequestBodyBytes."""
    name = "proxy-body-size"
    annotations = (PROXY_BODY_SIZE,)

    def convert(self, ctx):
        raw = ctx.annotations[PROXY_BODY_SIZE]
        try:
            size = parse_size_bytes(raw)
        except ValueError as exc:
            raise ConversionError(PROXY_BODY_SIZE, str(exc)) from None
        if size == 0:
            ctx.report_ignored(PROXY_BODY_SIZE, "proxy-body-size=0 (unlimited) is Traefik's default")
            return []
        ctx.report_converted(PROXY_BODY_SIZE)
        return [new_middleware(ctx, "bodysize", {"buffering": {"maxRequestBodyBytes": size}})]


class ProxyBufferingConverter(DirectiveConverter):
    """proxy-buffering=on → buffering middleware."""
    name = "proxy-buffering"
    annotations = (PROXY_BUFFERING,)

    def convert(self, ctx):
        raw = ctx.annotations[PROXY_BUFFERING]
        value = raw.strip().lower()
        if value == "on":
            ctx.report_converted(PROXY_BUFFERING)
            return [new_middleware(ctx, "buffering", {"buffering": {}})]
        if value == "off":
            ctx.report_ignored(PROXY_BUFFERING, "proxy-buffering=off is default behavior in Traefik")
            return []
        msg = f"proxy-buffering has unknown value {raw!r} and was ignored"
        ctx.warn(msg)
        ctx.report_warning(PROXY_BUFFERING, msg)
        return []


class ProxyBufferSizeConverter(DirectiveConverter):
    """proxy-buffer-size: no equivalent unless ``proxy_buffer_heuristic`` is on."""
    name = "proxy-buffer-size"
    annotations = (PROXY_BUFFER_SIZE,)

    def convert(self, ctx):
        raw = ctx.annotations[PROXY_BUFFER_SIZE]
        if not ctx.config.get("proxy_buffer_heuristic"):
            msg = "proxy-buffer-size has no Traefik equivalent"
            ctx.warn(msg)
            ctx.report_skipped(PROXY_BUFFER_SIZE, msg)
            return []
        try:
            size = parse_size_bytes(raw)
        except ValueError as exc:
            ctx.warn(str(exc))
            ctx.report_skipped(PROXY_BUFFER_SIZE, str(exc))
            return []
        msg = (f"proxy-buffer-size={raw} mapped to buffering.memResponseBodyBytes={size}; "
               f"semantics differ, review before use")
        ctx.warn(msg)
        ctx.report_warning(PROXY_BUFFER_SIZE, msg)
        return [new_middleware(ctx, "buffer-size", {"buffering": {"memResponseBodyBytes": size}})]


class ProxyTimeoutsConverter(DirectiveConverter):
    """proxy-read-timeout / proxy-send-timeout: ServersTransport only."""
    name = "proxy-timeouts"
    annotations = (PROXY_READ_TIMEOUT, PROXY_SEND_TIMEOUT)

    _MESSAGES = {
        PROXY_READ_TIMEOUT: "proxy-read-timeout cannot be set per-route in Traefik; configure via "
                            "ServersTransport forwardingTimeouts.responseHeaderTimeout in dynamic config",
        PROXY_SEND_TIMEOUT: "proxy-send-timeout cannot be set per-route in Traefik; configure via "
                            "ServersTransport forwardingTimeouts in dynamic config",
    }

    def convert(self, ctx):
        for key in self.annotations:
            if key in ctx.annotations:
                ctx.warn(self._MESSAGES[key])
                ctx.report_skipped(key, self._MESSAGES[key])
        return []


class UpstreamVhostConverter(DirectiveConverter):
    """upstream-vhost → request Host header."""
    name = "upstream-vhost"
    annotations = (UPSTREAM_VHOST,)

    def convert(self, ctx):
        vhost = ctx.annotations[UPSTREAM_VHOST].strip()
        if not vhost:
            ctx.report_ignored(UPSTREAM_VHOST, "empty upstream-vhost")
            return []
        ctx.report_converted(UPSTREAM_VHOST)
        return [new_middleware(ctx, "upstream-vhost", {
            "headers": {"customRequestHeaders": {"Host": vhost}},
        })]


class ProxyResponseRewriteConverter(DirectiveConverter):
    """proxy-redirect-* / proxy-cookie-path: no response rewriting in Traefik."""
    name = "proxy-response-rewrite"
    annotations = (PROXY_REDIRECT_FROM, PROXY_REDIRECT_TO, PROXY_COOKIE_PATH)

    def convert(self, ctx):
        ann = ctx.annotations
        if PROXY_REDIRECT_FROM in ann or PROXY_REDIRECT_TO in ann:
            msg = ("proxy-redirect-from/to rewrite Location headers; Traefik has no "
                   "equivalent, fix redirects in the backend")
            ctx.warn(msg)
            for key in (PROXY_REDIRECT_FROM, PROXY_REDIRECT_TO):
                if key in ann:
                    ctx.report_skipped(key, msg)
        if PROXY_COOKIE_PATH in ann:
            msg = "proxy-cookie-path has no Traefik equivalent, set the cookie path in the backend"
            ctx.warn(msg)
            ctx.report_skipped(PROXY_COOKIE_PATH, msg)
        return []


class GlobalOnlyConverter(DirectiveConverter):
    """Directives that only exist as global settings in Traefik."""
    name = "global-only"
    annotations = (
        SERVICE_UPSTREAM, ENABLE_OPENTRACING, ENABLE_OPENTELEMETRY,
        UNDERSCORES_IN_HEADERS, CLIENT_HEADER_BUFFER_SIZE, LARGE_CLIENT_HEADER_BUFFERS,
    )

    _MESSAGES = {
        SERVICE_UPSTREAM: "service-upstream=true is default behavior in Traefik",
        ENABLE_OPENTRACING: "enable-opentracing is global in Traefik and cannot be enabled per Ingress",
        ENABLE_OPENTELEMETRY: "enable-opentelemetry must be configured globally in Traefik static "
                              "config (tracing.otlp)",
        UNDERSCORES_IN_HEADERS: "Traefik accepts headers with underscores by default",
        CLIENT_HEADER_BUFFER_SIZE: "client-header-buffer-size has no per-route equivalent in Traefik",
        LARGE_CLIENT_HEADER_BUFFERS: "large-client-header-buffers has no per-route equivalent in Traefik",
    }
    _TRACING = (ENABLE_OPENTRACING, ENABLE_OPENTELEMETRY)

    def convert(self, ctx):
        ann = ctx.annotations
        for key in self.annotations:
            if key not in ann:
                continue
            msg = self._MESSAGES[key]
            if key in self._TRACING and parse_bool(ann[key]):
                ctx.warn(msg)
            ctx.report_ignored(key, msg)
        return []


class ConfigurationSnippetConverter(DirectiveConverter):
    """configuration-snippet → headers middleware, all or nothing."""
    name = "configuration-snippet"
    annotations = (CONFIGURATION_SNIPPET,)

    def convert(self, ctx):
        snippet = ctx.annotations[CONFIGURATION_SNIPPET]
        if not snippet.strip():
            ctx.report_ignored(CONFIGURATION_SNIPPET, "empty configuration-snippet")
            return []

        parsed = parse_configuration_snippet(snippet)
        for w in parsed.warnings:
            ctx.warn(w)

        if parsed.unsupported:
            ctx.warn(SNIPPET_SKIPPED_WARNING)
            ctx.report_skipped(
                CONFIGURATION_SNIPPET,
                f"{len(parsed.unsupported)} unsupported directive(s), first: "
                f"{parsed.unsupported[0]!r}")
            return []

        if not parsed.has_headers:
            ctx.report_ignored(CONFIGURATION_SNIPPET, "no convertible directives")
            return []

        headers = {}
        if parsed.request_headers:
            headers["customRequestHeaders"] = parsed.request_headers
        if parsed.response_headers:
            headers["customResponseHeaders"] = parsed.response_headers
        if parsed.warnings:
            ctx.report_warning(CONFIGURATION_SNIPPET, "; ".join(parsed.warnings))
        else:
            ctx.report_converted(CONFIGURATION_SNIPPET)
        return [new_middleware(ctx, "snippet-headers", {"headers": headers})]


class ServerSnippetConverter(DirectiveConverter):
    """server-snippet: raw server blocks are never converted."""
    name = "server-snippet"
    annotations = (SERVER_SNIPPET,)

    def convert(self, ctx):
        msg = "server-snippet contains raw NGINX server configuration and was skipped"
        ctx.warn(msg)
        ctx.report_skipped(SERVER_SNIPPET, msg)
        return []
