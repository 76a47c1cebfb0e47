"""Public data types for converters (context, result, report, base classes)."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Protocol


class AnnotationStatus(str, Enum):
    """Migration outcome of a single annotation."""
    CONVERTED = "converted"
    WARNED = "warning"
    SKIPPED = "skipped"
    IGNORED = "ignored"


class MiddlewareCategory(IntEnum):
    """Chain position of a middleware (lower runs first)."""
    SHORT_CIRCUIT = 0
    RESPONSE_HEADERS = 1
    AUTH = 2
    REQUEST_TRANSFORM = 3
    OTHER = 4


class EntryPointPolicy(str, Enum):
    """How IngressRoute entry points are chosen."""
    TLS = "tls"          # websecure when the ingress declares spec.tls
    SCHEME = "scheme"    # websecure when the backend scheme is https


class ConversionError(Exception):
    """Hard error raised while converting one annotation.

    Aborts the producing step only, unless *aborts_ingress* is set, in which
    case the rest of the ingress is not converted.
    """

    def __init__(self, annotation: str, message: str, aborts_ingress: bool = False):
        super().__init__(message)
        self.annotation = annotation
        self.aborts_ingress = aborts_ingress


class CertificateLookupError(Exception):
    """Cluster lookup failed for a reason other than "not found"."""


class CertificateLookup(Protocol):
    """Cluster access to cert-manager Certificate resources."""

    def find_certificate_by_secret(self, namespace: str, secret_name: str) -> dict | None:
        """Return the first Certificate whose spec.secretName matches, or None."""


@dataclass
class ReportEntry:
    """Outcome recorded for one annotation key."""
    name: str
    status: AnnotationStatus
    message: str = ""

    def to_dict(self) -> dict:
        data = {"name": self.name, "status": self.status.value}
        if self.message:
            data["message"] = self.message
        return data


@dataclass
class IngressReport:
    """Append-only log of annotation outcomes for a single Ingress."""
    namespace: str = ""
    name: str = ""
    entries: list[ReportEntry] = field(default_factory=list)

    def add(self, name: str, status: AnnotationStatus, message: str = "") -> None:
        self.entries.append(ReportEntry(name, status, message))

    def has(self, name: str) -> bool:
        """Return True if an outcome was already recorded for *name*."""
        return any(e.name == name for e in self.entries)

    def to_dict(self) -> dict:
        return {
            "namespace": self.namespace,
            "name": self.name,
            "entries": [e.to_dict() for e in self.entries],
        }


@dataclass
class GlobalReport:
    """Per-Ingress reports for a whole run."""
    ingresses: list[IngressReport] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"ingresses": [r.to_dict() for r in self.ingresses]}


@dataclass
class ConvertResult:
    """Resources and diagnostics produced for one Ingress (or a whole run)."""
    middlewares: list[dict] = field(default_factory=list)
    ingress_routes: list[dict] = field(default_factory=list)
    tls_options: list[dict] = field(default_factory=list)
    tls_option_refs: dict[str, str] = field(default_factory=dict)
    certificates: list[dict] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    ingress_report: IngressReport = field(default_factory=IngressReport)

    def absorb(self, other: "ConvertResult") -> None:
        """Merge another result into this one (certificates deduplicated)."""
        self.middlewares.extend(other.middlewares)
        self.ingress_routes.extend(other.ingress_routes)
        self.tls_options.extend(other.tls_options)
        self.tls_option_refs.update(other.tls_option_refs)
        seen = {_object_key(c) for c in self.certificates}
        for cert in other.certificates:
            key = _object_key(cert)
            if key not in seen:
                seen.add(key)
                self.certificates.append(cert)
        self.warnings.extend(other.warnings)


def _annotation_str(value) -> str:
    """Annotations are strings; hand-written YAML may leave true/10 unquoted."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return value if isinstance(value, str) else str(value)


def _object_key(obj: dict) -> tuple[str, str]:
    meta = obj.get("metadata") or {}
    return meta.get("namespace", ""), meta.get("name", "")


@dataclass
class ConvertContext:
    """Shared state passed to every converter while one Ingress is converted."""
    ingress: dict
    config: dict = field(default_factory=dict)
    cert_lookup: CertificateLookup | None = None
    result: ConvertResult = field(default_factory=ConvertResult)

    @property
    def name(self) -> str:
        return (self.ingress.get("metadata") or {}).get("name", "")

    @property
    def namespace(self) -> str:
        return (self.ingress.get("metadata") or {}).get("namespace", "") or ""

    @property
    def annotations(self) -> dict[str, str]:
        raw = (self.ingress.get("metadata") or {}).get("annotations") or {}
        return {k: _annotation_str(v) for k, v in raw.items()}

    @property
    def spec(self) -> dict:
        return self.ingress.get("spec") or {}

    def warn(self, message: str) -> None:
        """Add a free-text, operator-facing warning."""
        self.result.warnings.append(message)

    def report_converted(self, name: str, message: str = "") -> None:
        self.result.ingress_report.add(name, AnnotationStatus.CONVERTED, message)

    def report_warning(self, name: str, message: str) -> None:
        self.result.ingress_report.add(name, AnnotationStatus.WARNED, message)

    def report_skipped(self, name: str, message: str) -> None:
        self.result.ingress_report.add(name, AnnotationStatus.SKIPPED, message)

    def report_ignored(self, name: str, message: str = "") -> None:
        self.result.ingress_report.add(name, AnnotationStatus.IGNORED, message)


class DirectiveConverter:
    """Base class for annotation converters.

    ``annotations`` lists the keys the converter owns; ``convert`` returns the
    Middleware documents it produced and records one report entry per owned
    key that is present on the Ingress.
    """
    name: str = ""
    annotations: tuple[str, ...] = ()

    def applies(self, ctx: ConvertContext) -> bool:
        """Return True if any owned annotation is present."""
        present = ctx.annotations
        return any(key in present for key in self.annotations)

    def convert(self, ctx: ConvertContext) -> list[dict]:
        """Convert owned annotations. Override in subclasses."""
        return []
