"""Route compiler: Ingress rules → one Traefik IngressRoute per Ingress."""

import re

from nginx2traefik.core.constants import (
    BACKEND_PROTOCOL, ENTRY_POINT_WEB, ENTRY_POINT_WEBSECURE, GRPC_BACKEND,
    REPORT_KEY_PATH_REGEX, ROUTE_ANNOTATIONS, TRAEFIK_API_VERSION, USE_REGEX,
)
from nginx2traefik.pacts.helpers import object_meta, parse_bool
from nginx2traefik.pacts.ingress import (
    default_backend, has_tls, iter_backend_paths, resolve_service_port, tls_entries,
)
from nginx2traefik.pacts.types import ConversionError, ConvertContext, EntryPointPolicy

# Regex metacharacters that never appear in plain URL paths. Deliberately
# conservative: a bare "." or "-" does not count.
_REGEX_HINT_RE = re.compile(
    r"\.\*"            # .*
    r"|\.\+"           # .+
    r"|\(\?[:]"        # (?:
    r"|\[[^\]]+\]"     # [abc]
    r"|\\[dDwWsS.]"    # \d \w \.
    r"|\{\d+,?\d*\}"   # {2} {1,3}
    r"|[^/]\|[^/]"     # a|b, not //
)

# Traefik matches with Go RE2: no lookaround, no backreferences
_RE2_UNSUPPORTED_RE = re.compile(r"\(\?(?:=|!|<=|<!)|\\[1-9]")

_ROUTE_NAME_SUFFIX = {"h2c": "-grpc", "https": "-https"}


def resolve_scheme(backend_protocol: str, grpc_backend: bool = False) -> str:
    """Ingress-wide backend scheme from backend-protocol / grpc-backend."""
    proto = backend_protocol.strip().upper()
    if proto in ("", "HTTP"):
        return "h2c" if grpc_backend else "http"
    if proto == "HTTPS":
        return "https"
    if proto == "GRPC":
        return "h2c"
    if proto == "GRPCS":
        return "https"
    raise ConversionError(BACKEND_PROTOCOL, f"unsupported backend-protocol {backend_protocol!r}")


def looks_like_regex(path: str) -> bool:
    """True when *path* contains metacharacters a literal path never has."""
    return bool(_REGEX_HINT_RE.search(path))


def compile_path_regex(path: str) -> str | None:
    """Anchor *path* with ``^`` and return it if it is a valid RE2 pattern."""
    regex = path if path.startswith("^") else "^" + path
    if _RE2_UNSUPPORTED_RE.search(regex):
        return None
    try:
        re.compile(regex)
    except re.error:
        return None
    return regex


def build_host_match(host: str) -> str:
    return f"Host(`{host}`)" if host else ""


def build_path_match(path: str, path_type: str, use_regex: bool) -> tuple[str, str]:
    """Return (match expression, mode) for one path.

    mode is one of: ``plain`` (declared path type honoured), ``regex``
    (use-regex, compiled), ``regex-fallback`` (use-regex, did not compile),
    ``promoted`` (heuristic regex), ``suspicious`` (looks like a regex
    but does not compile, kept as prefix).
    """
    path = path or "/"
    if use_regex:
        regex = compile_path_regex(path)
        if regex is None:
            return f"PathPrefix(`{path}`)", "regex-fallback"
        return f"PathRegexp(`{regex}`)", "regex"
    if looks_like_regex(path):
        regex = compile_path_regex(path)
        if regex is None:
            return f"PathPrefix(`{path}`)", "suspicious"
        return f"PathRegexp(`{regex}`)", "promoted"
    if path_type == "Exact":
        return f"Path(`{path}`)", "plain"
    # Prefix, ImplementationSpecific and unset
    return f"PathPrefix(`{path}`)", "plain"


def combine_match(host_match: str, path_match: str) -> str:
    parts = [m for m in (host_match, path_match) if m]
    return " && ".join(parts) if parts else "PathPrefix(`/`)"


def route_key(host: str, path: str, path_type: str, use_regex: bool,
              service: str, port, scheme: str) -> str:
    """Dedup identity of a route."""
    return (f"host={host}|path={path}|pathtype={path_type}|"
            f"useregex={str(use_regex).lower()}|svc={service}|port={port}|scheme={scheme}")


def entry_points_for(policy: EntryPointPolicy, scheme: str, tls: bool) -> list[str]:
    if policy is EntryPointPolicy.SCHEME:
        return [ENTRY_POINT_WEBSECURE] if scheme == "https" else [ENTRY_POINT_WEB]
    return [ENTRY_POINT_WEBSECURE] if tls else [ENTRY_POINT_WEB]


def ingress_route_name(ingress_name: str, policy: EntryPointPolicy, scheme: str) -> str:
    """IngressRoute name; the scheme policy tags non-HTTP backends."""
    if policy is EntryPointPolicy.SCHEME:
        return ingress_name + _ROUTE_NAME_SUFFIX.get(scheme, "")
    return ingress_name


def _entry_point_policy(config: dict) -> EntryPointPolicy:
    policy = config.get("entry_point_policy")
    if policy:
        return EntryPointPolicy(policy)
    # a forced protocol only makes sense with scheme-derived entry points
    if config.get("backend_protocol"):
        return EntryPointPolicy.SCHEME
    return EntryPointPolicy.TLS


def _resolve_ingress_scheme(ctx: ConvertContext) -> str:
    """Resolve the scheme and report backend-protocol / grpc-backend."""
    ann = ctx.annotations
    override = ctx.config.get("backend_protocol")
    if override:
        scheme = resolve_scheme(override)
        for key in (BACKEND_PROTOCOL, GRPC_BACKEND):
            if key in ann:
                ctx.report_ignored(key, f"overridden by backend protocol {override}")
        return scheme

    scheme = resolve_scheme(ann.get(BACKEND_PROTOCOL, ""), parse_bool(ann.get(GRPC_BACKEND)))
    if BACKEND_PROTOCOL in ann:
        ctx.report_converted(BACKEND_PROTOCOL, f"service scheme {scheme}")
    if GRPC_BACKEND in ann:
        if parse_bool(ann[GRPC_BACKEND]):
            ctx.report_converted(GRPC_BACKEND, f"service scheme {scheme}")
        else:
            ctx.report_ignored(GRPC_BACKEND, "grpc-backend is not true")
    return scheme


def _report_path_mode(ctx: ConvertContext, path: str, mode: str) -> str | None:
    """Warn about regex decisions; return a use-regex fallback message if any."""
    if mode == "regex-fallback":
        msg = (f"use-regex is set but path '{path}' is not a valid regex for Traefik; "
               f"fell back to PathPrefix")
        ctx.warn(msg)
        return msg
    if mode == "promoted":
        msg = (f"path '{path}' contains regex patterns without use-regex annotation; "
               f"auto-promoted to PathRegexp, verify behavior")
        ctx.warn(msg)
        ctx.report_warning(REPORT_KEY_PATH_REGEX, msg)
    elif mode == "suspicious":
        msg = (f"path '{path}' contains regex-like characters but is not a valid regex; "
               f"fell back to PathPrefix, manual conversion required")
        ctx.warn(msg)
        ctx.report_skipped(REPORT_KEY_PATH_REGEX, msg)
    return None


def compile_routes(ctx: ConvertContext, middlewares: list[dict]) -> dict | None:
    """Build the IngressRoute for the current Ingress.

    *middlewares* must already be in chain order; every route references
    all of them. Returns None when the Ingress yields no route. Raises
    ConversionError for an unsupported backend-protocol.
    """
    ann = ctx.annotations
    scheme = _resolve_ingress_scheme(ctx)
    policy = _entry_point_policy(ctx.config)
    use_regex = parse_bool(ann.get(USE_REGEX))
    refs = [{"name": mw["metadata"]["name"]} for mw in middlewares]

    def _route(match: str, service: str, port) -> dict:
        route = {
            "kind": "Rule",
            "match": match,
            "services": [{"name": service, "port": port, "scheme": scheme}],
        }
        if refs:
            route["middlewares"] = [dict(r) for r in refs]
        return route

    routes = []
    seen = set()
    regex_fallbacks = []

    for host, path_entry in iter_backend_paths(ctx.ingress):
        path = path_entry.get("path", "") or ""
        service, port = resolve_service_port(path_entry.get("backend") or {})
        if not service:
            ctx.warn(f"Ingress {ctx.name}: path '{path or '/'}' on host '{host or '*'}' "
                     f"has no service backend and was skipped")
            continue
        path_type = path_entry.get("pathType") or "Prefix"
        key = route_key(host, path, path_type, use_regex, service, port, scheme)
        if key in seen:
            continue
        seen.add(key)

        path_match, mode = build_path_match(path, path_type, use_regex)
        fallback = _report_path_mode(ctx, path or "/", mode)
        if fallback:
            regex_fallbacks.append(fallback)
        routes.append(_route(combine_match(build_host_match(host), path_match), service, port))

    backend = default_backend(ctx.ingress)
    if backend:
        service, port = resolve_service_port(backend)
        if service:
            key = route_key("", "/", "default", False, service, port, scheme)
            if key not in seen:
                seen.add(key)
                route = _route("PathPrefix(`/`)", service, port)
                route["priority"] = 1
                routes.append(route)
        else:
            ctx.warn(f"Ingress {ctx.name}: defaultBackend is not a service and was skipped")

    if USE_REGEX in ann:
        if not use_regex:
            ctx.report_ignored(USE_REGEX, "use-regex is not true")
        elif regex_fallbacks:
            ctx.report_warning(USE_REGEX, "; ".join(regex_fallbacks))
        elif routes:
            ctx.report_converted(USE_REGEX)

    if not routes:
        ctx.warn(f"Ingress {ctx.name} has no service backends; no IngressRoute generated")
        for key in ROUTE_ANNOTATIONS:
            if key in ann and not ctx.result.ingress_report.has(key):
                ctx.report_ignored(key, "no routes generated")
        return None

    spec = {
        "entryPoints": entry_points_for(policy, scheme, has_tls(ctx.ingress)),
        "routes": routes,
    }
    tls = {}
    for entry in tls_entries(ctx.ingress):
        if entry.get("secretName"):
            tls["secretName"] = entry["secretName"]
            break
    option = ctx.result.tls_option_refs.get(ctx.name)
    if option:
        tls["options"] = {"name": option}
    if tls:
        spec["tls"] = tls

    return {
        "apiVersion": TRAEFIK_API_VERSION,
        "kind": "IngressRoute",
        "metadata": object_meta(ingress_route_name(ctx.name, policy, scheme), ctx.namespace),
        "spec": spec,
    }
