"""Report summaries: outcome counts and migration result label."""

from dataclasses import dataclass

from nginx2traefik.pacts.types import AnnotationStatus, GlobalReport, IngressReport

LABEL_MANUAL = "Manual action required"
LABEL_REVIEW = "Review recommended"
LABEL_CLEAN = "Clean migration"


@dataclass
class SummaryCounts:
    converted: int = 0
    warnings: int = 0
    skipped: int = 0
    ignored: int = 0

    def add(self, other: "SummaryCounts") -> None:
        self.converted += other.converted
        self.warnings += other.warnings
        self.skipped += other.skipped
        self.ignored += other.ignored

    @property
    def label(self) -> str:
        return result_label(self)


_FIELD_BY_STATUS = {
    AnnotationStatus.CONVERTED: "converted",
    AnnotationStatus.WARNED: "warnings",
    AnnotationStatus.SKIPPED: "skipped",
    AnnotationStatus.IGNORED: "ignored",
}


def summarize_ingress(report: IngressReport) -> SummaryCounts:
    counts = SummaryCounts()
    for entry in report.entries:
        attr = _FIELD_BY_STATUS[entry.status]
        setattr(counts, attr, getattr(counts, attr) + 1)
    return counts


def summarize_global(report: GlobalReport) -> SummaryCounts:
    total = SummaryCounts()
    for ingress in report.ingresses:
        total.add(summarize_ingress(ingress))
    return total


def result_label(counts: SummaryCounts) -> str:
    """skipped wins over warnings; nothing of either is a clean migration."""
    if counts.skipped > 0:
        return LABEL_MANUAL
    if counts.warnings > 0:
        return LABEL_REVIEW
    return LABEL_CLEAN
