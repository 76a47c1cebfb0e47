"""Config file loading (nginx2traefik.yaml)."""

import os

import yaml

from nginx2traefik.core.constants import DEFAULT_BURST_MULTIPLIER, DEFAULT_INGRESS_CLASSES
from nginx2traefik.pacts.types import EntryPointPolicy

CONFIG_FILENAME = "nginx2traefik.yaml"

BACKEND_PROTOCOLS = ("HTTP", "HTTPS", "GRPC", "GRPCS")


class ConfigError(Exception):
    """Invalid configuration value."""


def load_config(path: str) -> dict:
    """Load nginx2traefik.yaml or return the default config.

    ``entry_point_policy`` stays unset unless given: it then follows
    ``backend_protocol`` (scheme policy when forced, tls otherwise).
    """
    if os.path.exists(path):
        with open(path, encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    else:
        cfg = {}
    if not isinstance(cfg, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")
    cfg.setdefault("burst_multiplier", DEFAULT_BURST_MULTIPLIER)
    cfg.setdefault("proxy_buffer_heuristic", False)
    cfg.setdefault("ingress_classes", list(DEFAULT_INGRESS_CLASSES))
    cfg.setdefault("exclude", [])
    cfg.setdefault("ignored_annotation_prefixes", [])
    validate_config(cfg)
    return cfg


def validate_config(cfg: dict) -> None:
    """Raise ConfigError for values the converters cannot use."""
    multiplier = cfg.get("burst_multiplier")
    if isinstance(multiplier, bool) or not isinstance(multiplier, int) or multiplier <= 0:
        raise ConfigError(f"burst_multiplier must be a positive integer, got {multiplier!r}")
    policy = cfg.get("entry_point_policy")
    if policy is not None and policy not in {p.value for p in EntryPointPolicy}:
        raise ConfigError(f"entry_point_policy must be one of "
                          f"{', '.join(p.value for p in EntryPointPolicy)}, got {policy!r}")
    protocol = cfg.get("backend_protocol")
    if protocol and str(protocol).upper() not in BACKEND_PROTOCOLS:
        raise ConfigError(f"backend_protocol must be one of {', '.join(BACKEND_PROTOCOLS)}, "
                          f"got {protocol!r}")
    for key in ("ingress_classes", "exclude", "ignored_annotation_prefixes"):
        if not isinstance(cfg.get(key), list):
            raise ConfigError(f"{key} must be a list")
