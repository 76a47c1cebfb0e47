"""Public helper functions available to converters."""

from nginx2traefik.core.constants import TRAEFIK_API_VERSION
from nginx2traefik.pacts.types import ConvertContext

_SIZE_UNITS = {"k": 1024, "m": 1024 ** 2, "g": 1024 ** 3}


def mw_name(ctx: ConvertContext, suffix: str) -> str:
    """Middleware name scoped to the Ingress (``<ingress>-<suffix>``)."""
    return f"{ctx.name}-{suffix}"


def object_meta(name: str, namespace: str) -> dict:
    """Build metadata, leaving namespace out when the source had none."""
    meta = {"name": name}
    if namespace:
        meta["namespace"] = namespace
    return meta


def new_middleware(ctx: ConvertContext, suffix: str, spec: dict) -> dict:
    """Build a Traefik Middleware document for the current Ingress."""
    return {
        "apiVersion": TRAEFIK_API_VERSION,
        "kind": "Middleware",
        "metadata": object_meta(mw_name(ctx, suffix), ctx.namespace),
        "spec": spec,
    }


def split_and_trim(value: str, sep: str = ",") -> list[str]:
    """Split a separated annotation value, dropping blanks."""
    return [p.strip() for p in value.split(sep) if p.strip()]


def parse_bool(value: str | None) -> bool:
    """NGINX-style boolean: only "true" (any case) is true."""
    return (value or "").strip().lower() == "true"


def parse_size_bytes(value: str) -> int:
    """Parse an NGINX size ("512", "8k", "10m", "1g") into bytes.

    Raises ValueError for anything else.
    """
    v = value.strip().lower()
    multiplier = 1
    if v and v[-1] in _SIZE_UNITS:
        multiplier = _SIZE_UNITS[v[-1]]
        v = v[:-1]
    if not v.isdigit():
        raise ValueError(f"invalid size value: {value}")
    return int(v) * multiplier
