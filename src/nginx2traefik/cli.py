"""CLI entry point: NGINX Ingress → Traefik IngressRoute/Middleware manifests."""

import argparse
import os
import sys

from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException

from nginx2traefik import __version__
from nginx2traefik.core.convert import convert, select_ingresses
from nginx2traefik.io.config import CONFIG_FILENAME, ConfigError, load_config, validate_config
from nginx2traefik.io.kube import KubeCertificateLookup, list_ingresses, load_kube_client
from nginx2traefik.io.output import emit_warnings, write_outputs
from nginx2traefik.io.parsing import parse_dir, parse_file
from nginx2traefik.io.report import render_tables, render_text
from nginx2traefik.pacts.types import EntryPointPolicy


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nginx2traefik",
        description="Convert NGINX Ingress resources to Traefik CRDs",
    )
    source = parser.add_argument_group("input")
    source.add_argument(
        "--ingress-file", action="append", default=[], metavar="FILE",
        help="Ingress YAML file (repeatable, multi-document files accepted)",
    )
    source.add_argument(
        "--from-dir",
        help="Read every *.yaml / *.yml under this directory",
    )
    source.add_argument(
        "--cluster", action="store_true",
        help="Fetch Ingresses from the current Kubernetes cluster",
    )
    source.add_argument("--namespace", "-n", help="Cluster namespace (default: default)")
    source.add_argument("--all-namespaces", "-A", action="store_true",
                        help="Fetch Ingresses from all namespaces")
    source.add_argument("--context", help="kubeconfig context to use")
    source.add_argument(
        "--no-cluster-lookup", action="store_true",
        help="With --cluster, do not extract live cert-manager Certificates",
    )
    parser.add_argument(
        "--output-dir", default="./out",
        help="Where to write the generated manifests and report (default: ./out)",
    )
    parser.add_argument(
        "--config",
        help=f"Config file (default: ./{CONFIG_FILENAME} if present)",
    )
    parser.add_argument(
        "--entry-points", choices=[p.value for p in EntryPointPolicy],
        help="Entry point policy: tls (websecure when spec.tls is set) or "
             "scheme (websecure for https backends)",
    )
    parser.add_argument(
        "--backend-protocol",
        help="Force one backend protocol (HTTP, HTTPS, GRPC, GRPCS) for every Ingress",
    )
    parser.add_argument("--burst-multiplier", type=int,
                        help="Default rate limit burst multiplier (default: 5)")
    parser.add_argument("--table", action="store_true", help="Render the report as tables")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _apply_overrides(config: dict, args) -> None:
    """CLI flags win over config file keys."""
    if args.burst_multiplier is not None:
        config["burst_multiplier"] = args.burst_multiplier
    if args.entry_points:
        config["entry_point_policy"] = args.entry_points
    if args.backend_protocol:
        config["backend_protocol"] = args.backend_protocol


def _load_ingresses(args) -> tuple[list[dict], KubeCertificateLookup | None]:
    """Read Ingresses from the selected source; exit on unusable input."""
    if args.cluster:
        try:
            api_client = load_kube_client(args.context)
            namespace = None if args.all_namespaces else (args.namespace or "default")
            ingresses = list_ingresses(api_client, namespace)
        except (ConfigException, ApiException) as exc:
            print(f"Error: cannot read Ingresses from cluster: {exc}", file=sys.stderr)
            sys.exit(1)
        lookup = None if args.no_cluster_lookup else KubeCertificateLookup(api_client)
        return ingresses, lookup

    ingresses = []
    for path in args.ingress_file:
        if not os.path.isfile(path):
            print(f"Ingress file not found: {path}", file=sys.stderr)
            sys.exit(1)
        ingresses.extend(parse_file(path))
    if args.from_dir:
        if not os.path.isdir(args.from_dir):
            print(f"Directory not found: {args.from_dir}", file=sys.stderr)
            sys.exit(1)
        ingresses.extend(parse_dir(args.from_dir))
    return ingresses, None


def main(argv: list[str] | None = None):
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not (args.cluster or args.ingress_file or args.from_dir):
        parser.error("one of --ingress-file, --from-dir or --cluster is required")
    if args.cluster and (args.ingress_file or args.from_dir):
        parser.error("--cluster cannot be combined with --ingress-file / --from-dir")

    config_path = args.config or CONFIG_FILENAME
    if args.config and not os.path.exists(args.config):
        print(f"Config file not found: {args.config}", file=sys.stderr)
        sys.exit(1)
    try:
        config = load_config(config_path)
        _apply_overrides(config, args)
        validate_config(config)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    ingresses, cert_lookup = _load_ingresses(args)
    selected = select_ingresses(ingresses, config)
    print(f"Parsed ingresses: {len(ingresses)} ({len(selected)} selected)", file=sys.stderr)
    if not selected:
        print("No NGINX Ingress to convert - nothing to write.", file=sys.stderr)
        sys.exit(1)

    result, report = convert(selected, config, cert_lookup)
    emit_warnings(result.warnings)
    write_outputs(result, report, args.output_dir)

    if args.table:
        render_tables(report)
    else:
        print(render_text(report), file=sys.stderr)


if __name__ == "__main__":
    main()
