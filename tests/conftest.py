"""Shared fixtures: plain-dict Ingress manifests and a fake certificate lookup."""

import copy

import pytest

from nginx2traefik.pacts.types import CertificateLookupError


def _ingress(name="web", namespace="default", annotations=None, rules=None,
             tls=None, ingress_class=None, default_backend=None):
    if rules is None:
        rules = [{
            "host": "app.example.com",
            "http": {"paths": [{
                "path": "/",
                "pathType": "Prefix",
                "backend": {"service": {"name": "web", "port": {"number": 80}}},
            }]},
        }]
    meta = {"name": name}
    if namespace:
        meta["namespace"] = namespace
    if annotations:
        meta["annotations"] = dict(annotations)
    spec = {"rules": rules}
    if tls is not None:
        spec["tls"] = tls
    if ingress_class:
        spec["ingressClassName"] = ingress_class
    if default_backend:
        spec["defaultBackend"] = default_backend
    return {"apiVersion": "networking.k8s.io/v1", "kind": "Ingress",
            "metadata": meta, "spec": spec}


@pytest.fixture
def make_ingress():
    """Factory for Ingress manifests (one host, one Prefix path by default)."""
    return _ingress


def path_entry(path, service="web", port=80, path_type="Prefix"):
    return {
        "path": path,
        "pathType": path_type,
        "backend": {"service": {"name": service, "port": {"number": port}}},
    }


@pytest.fixture
def make_path():
    return path_entry


class FakeCertificateLookup:
    """In-memory lookup: {(namespace, secret): certificate}."""

    def __init__(self, certificates=None, error=None):
        self.certificates = certificates or {}
        self.error = error
        self.calls = []

    def find_certificate_by_secret(self, namespace, secret_name):
        self.calls.append((namespace, secret_name))
        if self.error:
            raise CertificateLookupError(self.error)
        cert = self.certificates.get((namespace, secret_name))
        return copy.deepcopy(cert) if cert is not None else None


@pytest.fixture
def fake_lookup():
    return FakeCertificateLookup
