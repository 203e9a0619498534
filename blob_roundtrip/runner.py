from dataclasses import dataclass, field
from logging import getLogger

from .capacity_gate import GateDecision, authorize, read_capacity_limits
from .comparator import compare
from .config import BlobCheckSettings
from .inserter import StreamingInserter
from .lifecycle import ArtifactManager
from .payload import Artifact
from .retriever import MultiModeRetriever, RetrievalMode

logger = getLogger(__name__)


@dataclass
class RoundTripReport:
    artifact: Artifact = None
    skipped: bool = False
    skip_reason: str = ""
    results: dict = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return not self.skipped and bool(self.results) and all(self.results.values())

    def failures(self):
        return {mode: outcome for mode, outcome in self.results.items() if not outcome}

    def assert_passed(self):
        failures = self.failures()
        if not failures:
            return
        lines = [
            f"Inserted BLOB data did not match retrieved BLOB data for {mode.accessor}: {outcome.describe()}"
            for mode, outcome in failures.items()
        ]
        raise AssertionError("\n".join(lines))


class RoundTripCheck:
    """Insert the payload once and verify every configured retrieval mode"""

    def __init__(self, api, settings: BlobCheckSettings, artifacts: ArtifactManager):
        self.api = api
        self.settings = settings
        self.artifacts = artifacts
        self.inserter = StreamingInserter(api, settings.table, settings.column)
        self.retriever = MultiModeRetriever(
            api, settings.table, settings.column, read_size=settings.stream_read_size
        )

    @property
    def modes(self):
        return RetrievalMode.parse(self.settings.modes)

    def prepare_table(self):
        table, column = self.settings.table, self.settings.column
        self.api.execute(f"DROP TABLE IF EXISTS `{table}`", commit=True)
        self.api.execute(
            f"CREATE TABLE `{table}` (pos INT PRIMARY KEY AUTO_INCREMENT, `{column}` LONGBLOB)",
            commit=True,
        )

    def count_rows(self) -> int:
        row = self.api.fetch_one(f"SELECT COUNT(*) FROM `{self.settings.table}`")
        return int(row[0])

    def authorize(self, artifact: Artifact) -> GateDecision:
        limits = read_capacity_limits(self.api)
        return authorize(limits, artifact.length, limits.server_version)

    def verify(self, artifact: Artifact, modes=None) -> dict:
        results = {}
        for mode in modes or self.modes:
            retrieved = self.retriever.retrieve(mode)
            outcome = compare(retrieved, artifact)
            level = "passed" if outcome else "FAILED"
            logger.info(f"{mode.accessor}: {level} ({outcome.describe()})")
            results[mode] = outcome
        return results

    def run(self) -> RoundTripReport:
        artifact = self.artifacts.ensure(self.settings.required_size)
        report = RoundTripReport(artifact=artifact)

        decision = self.authorize(artifact)
        if not decision:
            report.skipped = True
            report.skip_reason = decision.reason
            return report

        self.prepare_table()
        self.inserter.insert(artifact)

        rows = self.count_rows()
        if rows != 1:
            raise AssertionError(f"expected exactly one row in `{self.settings.table}`, found {rows}")

        report.results = self.verify(artifact)
        return report
