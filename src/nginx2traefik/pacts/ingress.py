"""Read-only accessors over Ingress manifests."""


def get_annotations(manifest: dict) -> dict:
    """Raw annotation map of a manifest (never None)."""
    return (manifest.get("metadata") or {}).get("annotations") or {}


def get_ingress_class(manifest: dict) -> str:
    """Extract the ingress class from a manifest (spec or annotation)."""
    spec = manifest.get("spec") or {}
    cls = spec.get("ingressClassName", "")
    if not cls:
        cls = get_annotations(manifest).get("kubernetes.io/ingress.class", "")
    return str(cls).lower()


def resolve_service_port(backend: dict) -> tuple[str, int | str]:
    """Return (service name, port) of a backend, v1 or v1beta1 format.

    The port number is preferred over the port name. An empty service
    name means the backend is not a service (e.g. a resource backend).
    """
    if "service" in backend:
        svc = backend.get("service") or {}
        port = svc.get("port") or {}
        return svc.get("name", ""), port.get("number", port.get("name", ""))
    return backend.get("serviceName", ""), backend.get("servicePort", "")


def iter_backend_paths(manifest: dict):
    """Yield (host, path_entry) for every rule path, in document order."""
    spec = manifest.get("spec") or {}
    for rule in spec.get("rules") or []:
        host = rule.get("host", "") or ""
        for path_entry in (rule.get("http") or {}).get("paths") or []:
            yield host, path_entry


def default_backend(manifest: dict) -> dict | None:
    """spec.defaultBackend (v1) or spec.backend (v1beta1), if any."""
    spec = manifest.get("spec") or {}
    return spec.get("defaultBackend") or spec.get("backend")


def tls_entries(manifest: dict) -> list[dict]:
    """spec.tls entries (never None)."""
    return (manifest.get("spec") or {}).get("tls") or []


def has_tls(manifest: dict) -> bool:
    """True when the Ingress declares TLS termination."""
    return bool(tls_entries(manifest))


def tls_secret_hosts(manifest: dict) -> dict[str, list[str]]:
    """Map each distinct TLS secret name to the union of its hosts.

    Secret order follows the first appearance in spec.tls; entries without
    a secretName are ignored.
    """
    hosts_by_secret: dict[str, list[str]] = {}
    for entry in tls_entries(manifest):
        secret = entry.get("secretName")
        if not secret:
            continue
        hosts = hosts_by_secret.setdefault(secret, [])
        for host in entry.get("hosts") or []:
            if host not in hosts:
                hosts.append(host)
    return hosts_by_secret
