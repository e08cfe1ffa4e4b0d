"""Exception hierarchy shared by the indexing pipeline and its tools."""

from dataclasses import dataclass, field


class IndexerError(Exception):
    """Base class for every error raised by chainindexer."""


class ConfigurationError(IndexerError):
    """A component was built without a collaborator it cannot work without."""


class ExternalServiceError(IndexerError):
    """A remote service (document store, chain gateway) failed or answered with an error."""


@dataclass
class ItemFailure:
    """One failed item of a bulk request."""

    index: str
    doc_id: str
    status: int
    error_type: str = ""
    reason: str = ""


class BulkRequestError(ExternalServiceError):
    """Some items of a bulk request were rejected by the store."""

    def __init__(self, failures: list[ItemFailure]) -> None:
        self.failures = failures
        sample = "; ".join(f"{f.index}/{f.doc_id}: {f.error_type} {f.reason}".strip() for f in failures[:5])
        super().__init__(f"{len(failures)} bulk item(s) failed: {sample}")


class QueryFailuresError(ExternalServiceError):
    """A delete- or update-by-query left matching documents untouched."""

    def __init__(self, index: str, failures: list[ItemFailure], version_conflicts: int = 0) -> None:
        self.index = index
        self.failures = failures
        self.version_conflicts = version_conflicts
        sample = "; ".join(f"{f.doc_id}: {f.error_type} {f.reason}".strip() for f in failures[:5])
        super().__init__(
            f"{index}: {len(failures)} failure(s), {version_conflicts} version conflict(s) {sample}".strip()
        )


@dataclass
class RollbackFailure:
    index: str
    doc_ids: list[str] = field(default_factory=list)
    error: Exception | None = None


class RollbackError(IndexerError):
    """Rollback finished with some deletions failing. Successful deletions are kept."""

    def __init__(self, failures: list[RollbackFailure]) -> None:
        self.failures = failures
        super().__init__(
            "rollback incomplete: "
            + ", ".join(f"{f.index} ({len(f.doc_ids) or 'query'}): {f.error}" for f in failures)
        )

    @property
    def failed_ids(self) -> dict[str, list[str]]:
        result: dict[str, list[str]] = {}
        for failure in self.failures:
            result.setdefault(failure.index, []).extend(failure.doc_ids)
        return result
