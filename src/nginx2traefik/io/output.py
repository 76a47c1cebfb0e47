"""Output writers: Traefik/cert-manager YAML, warnings and the report."""

import os
import sys

import yaml

from nginx2traefik.pacts.types import ConvertResult, GlobalReport

HEADER = "# Generated by nginx2traefik - do not edit manually\n"

MIDDLEWARES_FILE = "middlewares.yaml"
INGRESSROUTES_FILE = "ingressroutes.yaml"
TLSOPTIONS_FILE = "tlsoptions.yaml"
CERTIFICATES_FILE = "certificates.yaml"
WARNINGS_FILE = "warnings.txt"
REPORT_FILE = "report.yaml"


def dump_documents(docs: list[dict]) -> str:
    """Multi-document YAML, keys in insertion order."""
    return yaml.dump_all(docs, default_flow_style=False, sort_keys=False, explicit_start=True)


def write_documents(docs: list[dict], output_dir: str, filename: str) -> str | None:
    """Write *docs* to one file; nothing is written for an empty list."""
    if not docs:
        return None
    path = os.path.join(output_dir, filename)
    with open(path, "w", encoding="utf-8") as f:
        f.write(HEADER)
        f.write(dump_documents(docs))
    print(f"Wrote {path}", file=sys.stderr)
    return path


def write_warnings(warnings: list[str], output_dir: str) -> str | None:
    if not warnings:
        return None
    path = os.path.join(output_dir, WARNINGS_FILE)
    with open(path, "w", encoding="utf-8") as f:
        for w in warnings:
            f.write(f"- {w}\n")
    print(f"Wrote {path}", file=sys.stderr)
    return path


def write_report(report: GlobalReport, output_dir: str) -> str:
    path = os.path.join(output_dir, REPORT_FILE)
    with open(path, "w", encoding="utf-8") as f:
        f.write(HEADER)
        yaml.dump(report.to_dict(), f, default_flow_style=False, sort_keys=False)
    print(f"Wrote {path}", file=sys.stderr)
    return path


def write_outputs(result: ConvertResult, report: GlobalReport, output_dir: str) -> list[str]:
    """Write every output category; returns the paths written."""
    os.makedirs(output_dir, exist_ok=True)
    written = [
        write_documents(result.middlewares, output_dir, MIDDLEWARES_FILE),
        write_documents(result.ingress_routes, output_dir, INGRESSROUTES_FILE),
        write_documents(result.tls_options, output_dir, TLSOPTIONS_FILE),
        write_documents(result.certificates, output_dir, CERTIFICATES_FILE),
        write_warnings(result.warnings, output_dir),
        write_report(report, output_dir),
    ]
    return [p for p in written if p]


def emit_warnings(warnings: list[str]) -> None:
    """Print all warnings to stderr."""
    for w in warnings:
        print(f"⚠ {w}", file=sys.stderr)
