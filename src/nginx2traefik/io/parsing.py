"""Load Ingress manifests from YAML files and directories."""

import sys
from pathlib import Path

import yaml

INGRESS_KIND = "Ingress"


def _ingresses_in(doc) -> list[dict]:
    """Ingress documents in *doc*, unwrapping ``kind: List``."""
    if not isinstance(doc, dict):
        return []
    kind = doc.get("kind") or ""
    if kind.endswith("List"):
        return [d for item in doc.get("items") or [] for d in _ingresses_in(item)]
    return [doc] if kind == INGRESS_KIND else []


def parse_file(path: str | Path) -> list[dict]:
    """All Ingresses in one (multi-document) YAML file.

    A file that fails to parse is skipped with a warning.
    """
    path = Path(path)
    ingresses = []
    try:
        with open(path, encoding="utf-8") as f:
            for doc in yaml.safe_load_all(f):
                ingresses.extend(_ingresses_in(doc))
    except yaml.YAMLError as exc:
        print(f"⚠ Skipping {path.name}: {exc.__class__.__name__}", file=sys.stderr)
        return []
    return ingresses


def parse_dir(directory: str | Path) -> list[dict]:
    """All Ingresses under *directory* (recursive, *.yaml and *.yml, sorted)."""
    root = Path(directory)
    files = sorted(set(root.rglob("*.yaml")) | set(root.rglob("*.yml")))
    ingresses = []
    for yaml_file in files:
        ingresses.extend(parse_file(yaml_file))
    return ingresses
