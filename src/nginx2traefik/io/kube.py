"""Live cluster access: Ingress listing and cert-manager Certificate lookup."""

import copy
import sys

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import HTTPError

from nginx2traefik.core.certificates import CertificateCache
from nginx2traefik.pacts.types import CertificateLookupError

PAGE_SIZE = 100

CERTIFICATE_GROUP = "cert-manager.io"
CERTIFICATE_VERSION = "v1"
CERTIFICATE_PLURAL = "certificates"


def load_kube_client(context: str | None = None) -> client.ApiClient:
    """kubeconfig (optionally a named context), else in-cluster config."""
    try:
        config.load_kube_config(context=context)
    except ConfigException:
        if context:
            raise
        config.load_incluster_config()
        print("Using in-cluster Kubernetes configuration", file=sys.stderr)
    return client.ApiClient()


def list_ingresses(api_client: client.ApiClient, namespace: str | None = None) -> list[dict]:
    """List networking.k8s.io/v1 Ingresses as plain manifests, page by page.

    *namespace* None lists all namespaces.
    """
    networking = client.NetworkingV1Api(api_client)
    ingresses = []
    token = None
    while True:
        kwargs = {"limit": PAGE_SIZE}
        if token:
            kwargs["_continue"] = token
        if namespace:
            resp = networking.list_namespaced_ingress(namespace, **kwargs)
        else:
            resp = networking.list_ingress_for_all_namespaces(**kwargs)
        for item in resp.items:
            manifest = api_client.sanitize_for_serialization(item)
            # list items carry no type meta
            manifest.setdefault("apiVersion", "networking.k8s.io/v1")
            manifest.setdefault("kind", "Ingress")
            ingresses.append(manifest)
        token = resp.metadata._continue if resp.metadata else None
        if not token:
            break
    return ingresses


class KubeCertificateLookup:
    """Certificate lookup backed by the CustomObjects API.

    Lists Certificates once per namespace (cached) and matches on
    spec.secretName: Certificate names need not equal the secret name.
    """

    def __init__(self, api_client: client.ApiClient, cache: CertificateCache | None = None):
        self.custom_api = client.CustomObjectsApi(api_client)
        self.cache = cache if cache is not None else CertificateCache()

    def _list_certificates(self, namespace: str) -> list[dict] | None:
        try:
            resp = self.custom_api.list_namespaced_custom_object(
                group=CERTIFICATE_GROUP,
                version=CERTIFICATE_VERSION,
                namespace=namespace,
                plural=CERTIFICATE_PLURAL,
            )
        except ApiException as e:
            if e.status == 404:
                print("⚠ cert-manager Certificate CRD not found in cluster; skipping extraction",
                      file=sys.stderr)
                return None
            raise CertificateLookupError(
                f"listing cert-manager Certificates in namespace {namespace!r}: "
                f"{e.status} {e.reason}") from e
        except (HTTPError, OSError) as e:
            raise CertificateLookupError(
                f"listing cert-manager Certificates in namespace {namespace!r}: "
                f"{e.__class__.__name__}: {e}") from e
        return resp.get("items", [])

    def find_certificate_by_secret(self, namespace: str, secret_name: str) -> dict | None:
        items = self.cache.get(namespace, self._list_certificates)
        for cert in items or []:
            if (cert.get("spec") or {}).get("secretName") == secret_name:
                return copy.deepcopy(cert)
        return None
