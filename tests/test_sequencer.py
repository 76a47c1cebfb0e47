"""Tests for middleware classification and chain ordering."""

import pytest

from nginx2traefik.core.constants import (
    AUTH_TYPE, AUTH_SECRET, ENABLE_CORS, LIMIT_RPS, REWRITE_TARGET,
)
from nginx2traefik.core.convert import convert_ingress
from nginx2traefik.core.sequencer import classify_middleware, sort_middlewares
from nginx2traefik.pacts.types import MiddlewareCategory


def _mw(name, spec):
    return {"kind": "Middleware", "metadata": {"name": name}, "spec": spec}


class TestClassify:

    @pytest.mark.parametrize("mw, expected", [
        (_mw("app-conditional-return", {"redirectRegex": {}}), MiddlewareCategory.SHORT_CIRCUIT),
        (_mw("app-cors", {"headers": {}}), MiddlewareCategory.RESPONSE_HEADERS),
        (_mw("app-upstream-vhost", {"headers": {}}), MiddlewareCategory.RESPONSE_HEADERS),
        (_mw("app-basicauth", {"basicAuth": {"secret": "s"}}), MiddlewareCategory.AUTH),
        (_mw("app-forwardauth", {"forwardAuth": {"address": "x"}}), MiddlewareCategory.AUTH),
        (_mw("app-rewrite", {"replacePathRegex": {}}), MiddlewareCategory.REQUEST_TRANSFORM),
        (_mw("app-https-redirect", {"redirectScheme": {}}), MiddlewareCategory.REQUEST_TRANSFORM),
        (_mw("app-bodysize", {"buffering": {}}), MiddlewareCategory.REQUEST_TRANSFORM),
        (_mw("app-ratelimit", {"rateLimit": {}}), MiddlewareCategory.OTHER),
        (_mw("app-ipallowlist", {"ipAllowList": {}}), MiddlewareCategory.OTHER),
        (_mw("app-buffering", {"buffering": {}}), MiddlewareCategory.OTHER),
    ])
    def test_categories(self, mw, expected):
        assert classify_middleware(mw) is expected

    def test_spec_field_wins_over_later_name_rule(self):
        """An auth field is checked before request-transform name hints."""
        mw = _mw("rewrite-basicauth", {"basicAuth": {}})
        assert classify_middleware(mw) is MiddlewareCategory.AUTH

    def test_missing_metadata_and_spec(self):
        assert classify_middleware({}) is MiddlewareCategory.OTHER


class TestSort:

    def test_stable_within_category(self):
        a = _mw("a-ratelimit", {"rateLimit": {}})
        b = _mw("b-ipallowlist", {"ipAllowList": {}})
        auth = _mw("c-basicauth", {"basicAuth": {}})
        assert sort_middlewares([a, b, auth]) == [auth, a, b]

    def test_does_not_mutate_input(self):
        items = [_mw("x-ratelimit", {"rateLimit": {}}), _mw("x-cors", {"headers": {}})]
        before = list(items)
        sort_middlewares(items)
        assert items == before

    def test_chain_order_on_route(self, make_ingress):
        """Route middleware refs follow headers → auth → transform → other."""
        result = convert_ingress(make_ingress(annotations={
            REWRITE_TARGET: "/",
            AUTH_TYPE: "basic",
            AUTH_SECRET: "creds",
            ENABLE_CORS: "true",
            LIMIT_RPS: "5",
        }))

        names = [m["name"] for m in result.ingress_routes[0]["spec"]["routes"][0]["middlewares"]]
        assert names == ["web-cors", "web-basicauth", "web-rewrite", "web-ratelimit"]
        assert [m["metadata"]["name"] for m in result.middlewares] == names
