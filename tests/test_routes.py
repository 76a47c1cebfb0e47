"""Tests for the route compiler."""

import pytest

from nginx2traefik.core.constants import (
    BACKEND_PROTOCOL, GRPC_BACKEND, LIMIT_RPS, REPORT_KEY_PATH_REGEX, USE_REGEX,
)
from nginx2traefik.core.convert import convert_ingress
from nginx2traefik.core.routes import (
    build_path_match, compile_path_regex, looks_like_regex, resolve_scheme, route_key,
)
from nginx2traefik.pacts.types import AnnotationStatus, ConversionError


def _status(result, key):
    entries = [e for e in result.ingress_report.entries if e.name == key]
    assert len(entries) == 1, entries
    return entries[0].status


def _rules(*paths, host="app.example.com"):
    return [{"host": host, "http": {"paths": list(paths)}}]


class TestResolveScheme:

    @pytest.mark.parametrize("proto, grpc, expected", [
        ("", False, "http"),
        ("", True, "h2c"),
        ("HTTP", False, "http"),
        ("HTTP", True, "h2c"),
        ("https", False, "https"),
        ("GRPC", False, "h2c"),
        ("GRPCS", False, "https"),
        ("HTTPS", True, "https"),
    ])
    def test_table(self, proto, grpc, expected):
        assert resolve_scheme(proto, grpc) == expected

    def test_unsupported_protocol(self):
        with pytest.raises(ConversionError, match="unsupported backend-protocol 'AJP'"):
            resolve_scheme("AJP")


class TestPathMatching:

    @pytest.mark.parametrize("path, expected", [
        ("/api/.*", True),
        ("/users/[0-9]+", True),
        ("/v\\d/items", True),
        ("/(?:a|b)/x", True),
        ("/static/app.js", False),
        ("/my-app/v1.2", False),
        ("//double", False),
    ])
    def test_looks_like_regex(self, path, expected):
        assert looks_like_regex(path) is expected

    def test_compile_anchors(self):
        assert compile_path_regex("/api/.*") == "^/api/.*"
        assert compile_path_regex("^/api") == "^/api"

    def test_compile_rejects_lookaround_and_backrefs(self):
        assert compile_path_regex("/a(?=b)") is None
        assert compile_path_regex("/(a)\\1") is None
        assert compile_path_regex("/[unclosed") is None

    @pytest.mark.parametrize("path, path_type, use_regex, expected", [
        ("/api", "Prefix", False, ("PathPrefix(`/api`)", "plain")),
        ("/api", "Exact", False, ("Path(`/api`)", "plain")),
        ("/api", "ImplementationSpecific", False, ("PathPrefix(`/api`)", "plain")),
        ("", "Prefix", False, ("PathPrefix(`/`)", "plain")),
        ("/v[0-9]+/", "Prefix", True, ("PathRegexp(`^/v[0-9]+/`)", "regex")),
        ("/a(?<=b)", "Prefix", True, ("PathPrefix(`/a(?<=b)`)", "regex-fallback")),
        ("/api/.*", "Prefix", False, ("PathRegexp(`^/api/.*`)", "promoted")),
        ("/x(?=y).*", "Prefix", False, ("PathPrefix(`/x(?=y).*`)", "suspicious")),
    ])
    def test_build_path_match(self, path, path_type, use_regex, expected):
        assert build_path_match(path, path_type, use_regex) == expected

    def test_route_key_format(self):
        key = route_key("a.com", "/x", "Prefix", True, "svc", 8080, "http")
        assert key == "host=a.com|path=/x|pathtype=Prefix|useregex=true|svc=svc|port=8080|scheme=http"


class TestCompileRoutes:

    def test_basic_route(self, make_ingress):
        result = convert_ingress(make_ingress())

        route = result.ingress_routes[0]
        assert route["kind"] == "IngressRoute"
        assert route["metadata"] == {"name": "web", "namespace": "default"}
        assert route["spec"] == {
            "entryPoints": ["web"],
            "routes": [{
                "kind": "Rule",
                "match": "Host(`app.example.com`) && PathPrefix(`/`)",
                "services": [{"name": "web", "port": 80, "scheme": "http"}],
            }],
        }

    def test_tls_secret_and_entry_point(self, make_ingress):
        result = convert_ingress(make_ingress(tls=[
            {"hosts": ["app.example.com"]},
            {"hosts": ["app.example.com"], "secretName": "app-tls"},
        ]))
        spec = result.ingress_routes[0]["spec"]
        assert spec["entryPoints"] == ["websecure"]
        assert spec["tls"] == {"secretName": "app-tls"}

    def test_every_route_references_all_middlewares(self, make_ingress, make_path):
        result = convert_ingress(make_ingress(
            annotations={LIMIT_RPS: "3"},
            rules=_rules(make_path("/a"), make_path("/b", service="other", port=8080)),
        ))
        routes = result.ingress_routes[0]["spec"]["routes"]
        assert len(routes) == 2
        assert all(r["middlewares"] == [{"name": "web-ratelimit"}] for r in routes)
        assert routes[1]["services"] == [{"name": "other", "port": 8080, "scheme": "http"}]

    def test_duplicate_paths_deduplicated(self, make_ingress, make_path):
        result = convert_ingress(make_ingress(rules=_rules(make_path("/a"), make_path("/a"))))
        assert len(result.ingress_routes[0]["spec"]["routes"]) == 1

    def test_port_name_used_when_no_number(self, make_ingress):
        rules = _rules({"path": "/", "pathType": "Prefix",
                        "backend": {"service": {"name": "web", "port": {"name": "http"}}}})
        result = convert_ingress(make_ingress(rules=rules))
        assert result.ingress_routes[0]["spec"]["routes"][0]["services"][0]["port"] == "http"

    def test_v1beta1_backend(self, make_ingress):
        rules = _rules({"path": "/", "backend": {"serviceName": "legacy", "servicePort": 8080}})
        result = convert_ingress(make_ingress(rules=rules))
        service = result.ingress_routes[0]["spec"]["routes"][0]["services"][0]
        assert service == {"name": "legacy", "port": 8080, "scheme": "http"}

    def test_host_less_rule(self, make_ingress, make_path):
        result = convert_ingress(make_ingress(rules=_rules(make_path("/api"), host="")))
        assert result.ingress_routes[0]["spec"]["routes"][0]["match"] == "PathPrefix(`/api`)"

    def test_default_backend_route(self, make_ingress):
        result = convert_ingress(make_ingress(
            rules=[],
            default_backend={"service": {"name": "fallback", "port": {"number": 80}}},
        ))
        routes = result.ingress_routes[0]["spec"]["routes"]
        assert routes == [{
            "kind": "Rule",
            "match": "PathPrefix(`/`)",
            "services": [{"name": "fallback", "port": 80, "scheme": "http"}],
            "priority": 1,
        }]

    def test_resource_backend_is_skipped(self, make_ingress):
        rules = _rules({"path": "/", "pathType": "Prefix",
                        "backend": {"resource": {"kind": "Bucket", "name": "b"}}})
        result = convert_ingress(make_ingress(rules=rules, annotations={USE_REGEX: "true"}))

        assert result.ingress_routes == []
        assert any("no service backend" in w for w in result.warnings)
        assert any("no IngressRoute generated" in w for w in result.warnings)
        assert _status(result, USE_REGEX) is AnnotationStatus.IGNORED


class TestRegexReporting:

    def test_use_regex_converted(self, make_ingress, make_path):
        result = convert_ingress(make_ingress(
            annotations={USE_REGEX: "true"}, rules=_rules(make_path("/v[0-9]+/items")),
        ))
        assert result.ingress_routes[0]["spec"]["routes"][0]["match"] == \
            "Host(`app.example.com`) && PathRegexp(`^/v[0-9]+/items`)"
        assert _status(result, USE_REGEX) is AnnotationStatus.CONVERTED

    def test_use_regex_fallback_is_one_warning_entry(self, make_ingress, make_path):
        result = convert_ingress(make_ingress(
            annotations={USE_REGEX: "true"},
            rules=_rules(make_path("/a(?=b)"), make_path("/c(?!d)")),
        ))
        assert _status(result, USE_REGEX) is AnnotationStatus.WARNED
        assert len(result.warnings) == 2

    def test_promoted_path_reported(self, make_ingress, make_path):
        result = convert_ingress(make_ingress(rules=_rules(make_path("/api/.*"))))
        assert "PathRegexp(`^/api/.*`)" in result.ingress_routes[0]["spec"]["routes"][0]["match"]
        assert _status(result, REPORT_KEY_PATH_REGEX) is AnnotationStatus.WARNED

    def test_suspicious_path_reported(self, make_ingress, make_path):
        result = convert_ingress(make_ingress(rules=_rules(make_path("/x(?=y).*"))))
        assert "PathPrefix(`/x(?=y).*`)" in result.ingress_routes[0]["spec"]["routes"][0]["match"]
        assert _status(result, REPORT_KEY_PATH_REGEX) is AnnotationStatus.SKIPPED

    def test_use_regex_false_is_ignored(self, make_ingress):
        result = convert_ingress(make_ingress(annotations={USE_REGEX: "false"}))
        assert _status(result, USE_REGEX) is AnnotationStatus.IGNORED


class TestBackendScheme:

    def test_grpc_backend(self, make_ingress):
        result = convert_ingress(make_ingress(annotations={GRPC_BACKEND: "true"}))
        route = result.ingress_routes[0]
        assert route["spec"]["routes"][0]["services"][0]["scheme"] == "h2c"
        assert route["metadata"]["name"] == "web"
        assert _status(result, GRPC_BACKEND) is AnnotationStatus.CONVERTED

    def test_scheme_policy_names_and_entry_points(self, make_ingress):
        config = {"entry_point_policy": "scheme"}
        grpc = convert_ingress(make_ingress(annotations={BACKEND_PROTOCOL: "GRPC"}), config=config)
        https = convert_ingress(make_ingress(annotations={BACKEND_PROTOCOL: "HTTPS"}), config=config)

        assert grpc.ingress_routes[0]["metadata"]["name"] == "web-grpc"
        assert grpc.ingress_routes[0]["spec"]["entryPoints"] == ["web"]
        assert https.ingress_routes[0]["metadata"]["name"] == "web-https"
        assert https.ingress_routes[0]["spec"]["entryPoints"] == ["websecure"]

    def test_configured_protocol_overrides_annotation(self, make_ingress):
        result = convert_ingress(make_ingress(annotations={BACKEND_PROTOCOL: "GRPC"}),
                                 config={"backend_protocol": "HTTPS"})
        route = result.ingress_routes[0]
        assert route["spec"]["routes"][0]["services"][0]["scheme"] == "https"
        # a configured protocol implies scheme-derived entry points
        assert route["spec"]["entryPoints"] == ["websecure"]
        assert route["metadata"]["name"] == "web-https"
        assert _status(result, BACKEND_PROTOCOL) is AnnotationStatus.IGNORED

    def test_unsupported_protocol_skips_route_only(self, make_ingress):
        result = convert_ingress(make_ingress(annotations={
            BACKEND_PROTOCOL: "AJP", LIMIT_RPS: "2",
        }))

        assert result.ingress_routes == []
        assert [m["metadata"]["name"] for m in result.middlewares] == ["web-ratelimit"]
        assert any(w.endswith("no IngressRoute generated") for w in result.warnings)
        assert _status(result, BACKEND_PROTOCOL) is AnnotationStatus.SKIPPED
        assert _status(result, LIMIT_RPS) is AnnotationStatus.CONVERTED
