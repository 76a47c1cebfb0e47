"""Certificate resolver: extract cert-manager Certificates, else generate them.

Per distinct TLS secret of an Ingress:

1. ask the lookup collaborator for a live Certificate (sanitized for
   declarative management when found);
2. otherwise build one from cert-manager annotations;
3. otherwise report the secret as skipped: manual creation required.
"""

import copy
import threading

from nginx2traefik.core.constants import (
    CERT_MANAGER_ANNOTATIONS, CERT_MANAGER_API_VERSION, CERT_MANAGER_CLUSTER_ISSUER,
    CERT_MANAGER_COMMON_NAME, CERT_MANAGER_DURATION, CERT_MANAGER_GROUP,
    CERT_MANAGER_ISSUER, CERT_MANAGER_ISSUER_GROUP, CERT_MANAGER_ISSUER_KIND,
    CERT_MANAGER_RENEW_BEFORE, REPORT_KEY_CERTIFICATE,
)
from nginx2traefik.pacts.helpers import object_meta
from nginx2traefik.pacts.ingress import tls_entries, tls_secret_hosts
from nginx2traefik.pacts.types import CertificateLookupError, ConvertContext

_SERVER_METADATA = (
    "resourceVersion", "uid", "creationTimestamp", "generation",
    "managedFields", "selfLink",
    # would garbage-collect the Certificate with the deleted Ingress
    "ownerReferences",
)
_NOISY_ANNOTATIONS = ("kubectl.kubernetes.io/last-applied-configuration",)
# Entries ending with "/" are prefixes
_STALE_LABELS = ("helm.sh/", "app.kubernetes.io/managed-by", "app.kubernetes.io/version")

_OPTIONAL_FIELDS = (
    (CERT_MANAGER_COMMON_NAME, "commonName"),
    (CERT_MANAGER_DURATION, "duration"),
    (CERT_MANAGER_RENEW_BEFORE, "renewBefore"),
)


class CertificateCache:
    """Namespace → Certificate list cache for one run.

    Entries are never evicted. Failed loads are cached too, so a broken
    namespace is queried once. Safe to share between threads.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[list[dict] | None, Exception | None]] = {}

    def get(self, namespace: str, loader) -> list[dict] | None:
        """Return cached items for *namespace*, calling ``loader(namespace)`` once.

        None means the Certificate CRD is not installed.
        """
        with self._lock:
            if namespace not in self._entries:
                try:
                    self._entries[namespace] = (loader(namespace), None)
                except CertificateLookupError as exc:
                    self._entries[namespace] = (None, exc)
            items, error = self._entries[namespace]
        if error is not None:
            raise error
        return items

    def __contains__(self, namespace: str) -> bool:
        with self._lock:
            return namespace in self._entries


def _is_stale_label(key: str) -> bool:
    return any(key.startswith(p) if p.endswith("/") else key == p for p in _STALE_LABELS)


def sanitize_certificate(cert: dict) -> dict:
    """Return a copy of a live Certificate fit for declarative management."""
    cert = copy.deepcopy(cert)
    meta = cert.setdefault("metadata", {})
    for key in _SERVER_METADATA:
        meta.pop(key, None)

    annotations = meta.get("annotations")
    if annotations is not None:
        for key in _NOISY_ANNOTATIONS:
            annotations.pop(key, None)
        if not annotations:
            del meta["annotations"]

    labels = meta.get("labels")
    if labels is not None:
        meta["labels"] = {k: v for k, v in labels.items() if not _is_stale_label(k)}
        if not meta["labels"]:
            del meta["labels"]

    cert.pop("status", None)
    return cert


def resolve_issuer(annotations: dict[str, str]) -> tuple[str, str]:
    """(issuer name, kind); cluster-issuer wins over issuer. ("", "") if none."""
    if annotations.get(CERT_MANAGER_CLUSTER_ISSUER):
        return annotations[CERT_MANAGER_CLUSTER_ISSUER], "ClusterIssuer"
    if annotations.get(CERT_MANAGER_ISSUER):
        return (annotations[CERT_MANAGER_ISSUER],
                annotations.get(CERT_MANAGER_ISSUER_KIND) or "Issuer")
    return "", ""


def generate_certificate(ctx: ConvertContext, secret: str, hosts: list[str]) -> dict | None:
    """Build a Certificate from cert-manager annotations, or None without issuer."""
    ann = ctx.annotations
    issuer, kind = resolve_issuer(ann)
    if not issuer:
        return None
    spec = {"secretName": secret}
    if hosts:
        spec["dnsNames"] = list(hosts)
    spec["issuerRef"] = {
        "name": issuer,
        "kind": kind,
        "group": ann.get(CERT_MANAGER_ISSUER_GROUP) or CERT_MANAGER_GROUP,
    }
    for key, field_name in _OPTIONAL_FIELDS:
        if ann.get(key):
            spec[field_name] = ann[key]
    return {
        "apiVersion": CERT_MANAGER_API_VERSION,
        "kind": "Certificate",
        "metadata": object_meta(secret, ctx.namespace),
        "spec": spec,
    }


def _try_extract(ctx: ConvertContext, secret: str) -> dict | None:
    if ctx.cert_lookup is None:
        return None
    try:
        cert = ctx.cert_lookup.find_certificate_by_secret(ctx.namespace, secret)
    except Exception as exc:  # pylint: disable=broad-except
        # "not found" is None; anything raised is a failed lookup
        detail = str(exc) if isinstance(exc, CertificateLookupError) else \
            f"{exc.__class__.__name__}: {exc}"
        msg = f"failed to look up Certificate for secret {secret!r}: {detail}"
        ctx.warn(msg)
        ctx.report_warning(REPORT_KEY_CERTIFICATE, msg)
        return None
    return sanitize_certificate(cert) if cert is not None else None


def resolve_certificates(ctx: ConvertContext) -> list[dict]:
    """Extract or generate one Certificate per distinct TLS secret."""
    for entry in tls_entries(ctx.ingress):
        if not entry.get("secretName"):
            ctx.warn(f"TLS entry with hosts {entry.get('hosts') or []} has no secretName; "
                     f"skipping Certificate extraction")

    certificates = []
    generated = 0
    for secret, hosts in tls_secret_hosts(ctx.ingress).items():
        cert = _try_extract(ctx, secret)
        if cert is not None:
            certificates.append(cert)
            ctx.report_converted(REPORT_KEY_CERTIFICATE,
                                 f"extracted Certificate {cert['metadata'].get('name', '')} "
                                 f"for secret {secret}")
            continue

        cert = generate_certificate(ctx, secret, hosts)
        if cert is not None:
            if not hosts:
                ctx.warn(f"Certificate {secret} has no dnsNames: the TLS entry lists no hosts")
            certificates.append(cert)
            generated += 1
            continue

        msg = (f"no Certificate found in cluster for secret {secret!r} and no cert-manager "
               f"issuer annotation present; manual Certificate creation required")
        ctx.warn(msg)
        ctx.report_skipped(REPORT_KEY_CERTIFICATE, msg)

    present = [k for k in CERT_MANAGER_ANNOTATIONS if k in ctx.annotations]
    for key in present:
        if generated:
            ctx.report_converted(key)
        elif not tls_entries(ctx.ingress):
            ctx.report_ignored(key, "Ingress has no spec.tls")
        else:
            ctx.report_ignored(key, "no Certificate generated from annotations")
    return certificates
