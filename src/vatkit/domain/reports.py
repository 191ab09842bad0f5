"""Tax report domain service: report creation, previews and submission."""

import logging
from contextlib import contextmanager
from datetime import UTC, date, datetime, timedelta
from typing import Callable, Iterator, Optional, Union

from vatkit.database.base import Database
from vatkit.domain.aggregation import vat_financial_data, zm_financial_data
from vatkit.domain.collaborators import (
    CAPABILITY_VAT_SUBMISSION,
    Authorizer,
    Filer,
    FilingRejection,
    FilingSnapshot,
    ManualFiler,
    PreviewArtifact,
    StaticAuthorizer,
)
from vatkit.domain.entities import (
    AttemptOutcome,
    Cadence,
    ReportKind,
    ReportStatus,
    ReportView,
    TaxReport,
    VatFinancialData,
    VatReportPreview,
    ZmFinancialData,
    ZmReportPreview,
)
from vatkit.domain.errors import (
    GENERIC_FILING_FAILURE,
    EmptyReportError,
    FilingUnavailableError,
    NotEntitledError,
    NotFoundError,
    SubmissionInProgressError,
    ValidationError,
    not_entitled,
    report_not_found,
    submission_in_progress,
)
from vatkit.domain.jurisdiction import JurisdictionSource, StaticJurisdictionSource
from vatkit.domain.lifecycle import (
    FILED_STATUSES,
    SUBMITTABLE_STATUSES,
    check_filing_outcome,
    check_report_transition,
)
from vatkit.domain.periods import ReportPeriods, build_periods, is_due_soon, is_overdue
from vatkit.domain.profile import ProfileService

logger = logging.getLogger(__name__)

FinancialData = Union[VatFinancialData, ZmFinancialData]

# A filing that holds the lock longer than this is assumed to have died
DEFAULT_LOCK_TIMEOUT = timedelta(minutes=15)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TaxReportService:
    """Service for VAT returns and EC Sales Lists (ZM).

    Reads (listing, previews) never change a report. Submissions are
    serialized per report through a lock held in the database, so two
    callers can never file the same report twice.
    """

    def __init__(
        self,
        db: Database,
        jurisdictions: Optional[JurisdictionSource] = None,
        authorizer: Optional[Authorizer] = None,
        filer: Optional[Filer] = None,
        clock: Optional[Callable[[], datetime]] = None,
        lock_timeout: timedelta = DEFAULT_LOCK_TIMEOUT,
    ):
        """Initialize tax report service.

        Args:
            db: Database instance
            jurisdictions: Jurisdiction tables (bundled tables by default)
            authorizer: Entitlement checks (everything allowed by default)
            filer: Tax authority integration (manual filing by default)
            clock: Returns the current time; used for attempt timestamps
            lock_timeout: Age after which a submission lock counts as abandoned
        """
        self.db = db
        self.jurisdictions = jurisdictions or StaticJurisdictionSource()
        self.authorizer = authorizer or StaticAuthorizer()
        self.filer = filer or ManualFiler()
        self.clock = clock or _utcnow
        self.lock_timeout = lock_timeout
        self.profiles = ProfileService(db, self.jurisdictions)

    # Creation and lookup

    def ensure_reports(
        self,
        kind: ReportKind,
        as_of: Optional[date] = None,
        lookahead_count: int = 1,
    ) -> list[TaxReport]:
        """Create draft reports for the periods starting with the one containing ``as_of``.

        Existing reports are returned unchanged, so calling this twice creates
        nothing new.

        Args:
            kind: VAT return or ZM
            as_of: Reference date (today if None)
            lookahead_count: Number of periods to cover

        Returns:
            The reports for those periods, oldest first
        """
        kind = ReportKind(kind)
        reports = []
        for period in self.periods(kind, as_of, lookahead_count):
            report = self.db.find_tax_report(kind, period.period_start)
            if report is None:
                report_id = self.db.create_tax_report(kind, period)
                logger.info("Created %s report %s for %s", kind.value, report_id, period.period_label)
                report = self.db.get_tax_report(report_id)
            reports.append(report)
        return reports

    def periods(
        self,
        kind: ReportKind,
        as_of: Optional[date] = None,
        lookahead_count: int = 1,
    ) -> ReportPeriods:
        """Reporting periods of a kind for the business profile.

        EC Sales Lists are filed per calendar quarter whatever the VAT cadence.
        """
        kind = ReportKind(kind)
        profile = self.profiles.require_profile()
        if as_of is None:
            as_of = self.clock().date()
        if kind == ReportKind.ZM:
            cadence, fiscal_year_start = Cadence.QUARTERLY, 1
        else:
            cadence, fiscal_year_start = profile.cadence, profile.fiscal_year_start
        return build_periods(
            cadence=cadence,
            fiscal_year_start=fiscal_year_start,
            as_of=as_of,
            lookahead_count=lookahead_count,
            lag=self.jurisdictions.filing_lag(profile.country_code, kind),
        )

    def get_report(self, report_id: int) -> Optional[TaxReport]:
        """Get report by ID.

        Returns:
            TaxReport entity or None if not found
        """
        return self.db.get_tax_report(report_id)

    def require_report(self, report_id: int) -> TaxReport:
        """Get report by ID, raising NotFoundError if missing."""
        report = self.db.get_tax_report(report_id)
        if report is None:
            raise NotFoundError(report_not_found(report_id), field="report_id", value=report_id)
        return report

    def list_reports(
        self,
        kind: Optional[ReportKind] = None,
        today: Optional[date] = None,
        user: Optional[str] = None,
    ) -> dict[str, list[ReportView]]:
        """List reports split into upcoming and submitted ones.

        Returns:
            Dictionary with "upcoming" (draft, previewed, rejected) and
            "submitted" (submitted, accepted) report views
        """
        if today is None:
            today = self.clock().date()
        may_submit = self.authorizer.is_entitled(user, CAPABILITY_VAT_SUBMISSION)

        views: dict[str, list[ReportView]] = {"upcoming": [], "submitted": []}
        for report in self.db.list_tax_reports(kind):
            filed = report.status in FILED_STATUSES
            submittable = report.status in SUBMITTABLE_STATUSES and today > report.period_end
            view = ReportView(
                report=report,
                overdue=not filed and is_overdue(report.period, today),
                due_soon=not filed and is_due_soon(report.period, today),
                submittable=submittable,
                can_submit=submittable and may_submit,
            )
            views["submitted" if filed else "upcoming"].append(view)
        return views

    # Previews

    def financial_data(self, report: TaxReport) -> FinancialData:
        """Aggregate the figures of a report from the current books."""
        profile = self.profiles.require_profile()
        invoices = self.db.list_invoices(start_date=report.period_start, end_date=report.period_end)
        transactions = self.db.list_transactions(
            start_date=report.period_start, end_date=report.period_end
        )
        aggregate = vat_financial_data if report.kind == ReportKind.VAT else zm_financial_data
        return aggregate(invoices, transactions, report.period, profile.to_party(), self.jurisdictions)

    def preview_vat_report(self, report_id: int) -> VatReportPreview:
        """Report and figures of a VAT return. Changes nothing."""
        report = self._require_kind(report_id, ReportKind.VAT)
        return VatReportPreview(report=report, financial_data=self.financial_data(report))

    def preview_zm_report(self, report_id: int) -> ZmReportPreview:
        """Report and figures of an EC Sales List. Changes nothing."""
        report = self._require_kind(report_id, ReportKind.ZM)
        return ZmReportPreview(report=report, financial_data=self.financial_data(report))

    def _require_kind(self, report_id: int, kind: ReportKind) -> TaxReport:
        report = self.require_report(report_id)
        if report.kind != kind:
            raise ValidationError(
                f"Report {report_id} is a {report.kind.value} report, not {kind.value}",
                field="kind",
                value=report.kind.value,
            )
        return report

    # Lifecycle

    def mark_previewed(self, report_id: int) -> TaxReport:
        """Record that the user has reviewed the report."""
        return self._transition(self.require_report(report_id), ReportStatus.PREVIEWED)

    def reset_to_draft(self, report_id: int) -> TaxReport:
        """Move a previewed report back to draft."""
        return self._transition(self.require_report(report_id), ReportStatus.DRAFT)

    def reopen(self, report_id: int) -> TaxReport:
        """Reopen a rejected report for correction.

        Earlier attempts stay on record; the next submission gets a new
        attempt number.
        """
        return self._transition(self.require_report(report_id), ReportStatus.DRAFT)

    def record_acceptance(self, report_id: int) -> TaxReport:
        """Record that the authority accepted a submitted report."""
        report = self.require_report(report_id)
        check_report_transition(report.status, ReportStatus.ACCEPTED)
        attempt = report.latest_attempt
        if attempt is not None:
            self.db.update_submission_attempt(
                attempt.id, AttemptOutcome.ACCEPTED, finished_at=self.clock()
            )
        return self._transition(report, ReportStatus.ACCEPTED)

    def record_rejection(self, report_id: int, message: Optional[str] = None) -> TaxReport:
        """Record that the authority rejected a submitted report.

        The authority's message is stored verbatim.
        """
        report = self.require_report(report_id)
        check_report_transition(report.status, ReportStatus.REJECTED)
        attempt = report.latest_attempt
        if attempt is not None:
            self.db.update_submission_attempt(
                attempt.id,
                AttemptOutcome.REJECTED,
                error_message=message or GENERIC_FILING_FAILURE,
                finished_at=self.clock(),
            )
        return self._transition(report, ReportStatus.REJECTED)

    def _transition(self, report: TaxReport, target: ReportStatus) -> TaxReport:
        check_report_transition(report.status, target)
        if target != report.status:
            self.db.update_tax_report_status(report.id, target)
            logger.info(
                "Report %s (%s %s): %s -> %s",
                report.id,
                report.kind.value,
                report.period_label,
                report.status.value,
                target.value,
            )
        return self.require_report(report.id)

    # Submission

    def test_submit(self, report_id: int) -> PreviewArtifact:
        """Run a test submission and return the authority's preview document.

        The status is left alone; only the time of the test is recorded.
        """
        report = self.require_report(report_id)
        snapshot = self._snapshot(report, self.financial_data(report))
        artifact = self.filer.test_file(snapshot)
        self.db.record_test_submission(report_id, self.clock())
        logger.info("Test-submitted report %s", report_id)
        return artifact

    @contextmanager
    def submission_lock(self, report_id: int) -> Iterator[None]:
        """Hold the report's submission lock for the duration of the block.

        Raises:
            SubmissionInProgressError: If another submission holds the lock and
                it is younger than ``lock_timeout``
        """
        now = self.clock()
        if not self.db.acquire_submission_lock(
            report_id, locked_at=now, stale_before=now - self.lock_timeout
        ):
            raise SubmissionInProgressError(
                submission_in_progress(report_id), field="report_id", value=report_id
            )
        try:
            yield
        finally:
            self.db.release_submission_lock(report_id)

    def force_unlock(self, report_id: int, user: Optional[str] = None) -> TaxReport:
        """Clear a submission lock left behind by a filing that never finished.

        Raises:
            NotEntitledError: If the user may not submit reports
            NotFoundError: If the report does not exist
        """
        if not self.authorizer.is_entitled(user, CAPABILITY_VAT_SUBMISSION):
            raise NotEntitledError(
                not_entitled(user, CAPABILITY_VAT_SUBMISSION), field="user", value=user
            )
        report = self.require_report(report_id)
        self.db.release_submission_lock(report_id)
        logger.warning("Submission lock of report %s cleared by %s", report_id, user)
        return report

    def submit(self, report_id: int, user: Optional[str] = None) -> TaxReport:
        """File a report with the tax authority.

        Args:
            report_id: Report to file
            user: Submitting user, checked for the ``vat_submission`` capability

        Returns:
            The report after filing: SUBMITTED on success, REJECTED when the
            authority refused it

        Raises:
            NotEntitledError: If the user may not submit reports
            InvalidTransitionError: If the report is not draft or previewed
            EmptyReportError: If the period has nothing to report
            SubmissionInProgressError: If the report is being submitted already
            FilingUnavailableError: If the authority could not be reached
        """
        if not self.authorizer.is_entitled(user, CAPABILITY_VAT_SUBMISSION):
            raise NotEntitledError(
                not_entitled(user, CAPABILITY_VAT_SUBMISSION), field="user", value=user
            )
        report = self.require_report(report_id)
        check_report_transition(report.status, ReportStatus.SUBMITTED)
        self._require_content(report, self.financial_data(report))

        with self.submission_lock(report_id):
            # Another caller may have filed while we were validating
            report = self.require_report(report_id)
            check_report_transition(report.status, ReportStatus.SUBMITTED)
            data = self.financial_data(report)
            self._require_content(report, data)
            return self._file(report, data, user)

    def _require_content(self, report: TaxReport, data: FinancialData) -> None:
        if data.is_empty():
            raise EmptyReportError(
                f"Report {report.id} ({report.period_label}) has nothing to report",
                field="report_id",
                value=report.id,
            )

    def _snapshot(self, report: TaxReport, data: FinancialData) -> FilingSnapshot:
        profile = self.profiles.require_profile()
        attempt_number = max((attempt.attempt_number for attempt in report.attempts), default=0) + 1
        return FilingSnapshot(
            report=report,
            financial_data=data,
            seller_vat_number=profile.vat_number,
            attempt_number=attempt_number,
        )

    def _file(self, report: TaxReport, data: FinancialData, user: Optional[str]) -> TaxReport:
        snapshot = self._snapshot(report, data)
        started_at = self.clock()
        logger.info("Submitting report %s, attempt %s", report.id, snapshot.attempt_number)

        try:
            result = self.filer.file(snapshot)
        except FilingUnavailableError as e:
            self.db.create_submission_attempt(
                report_id=report.id,
                attempt_number=snapshot.attempt_number,
                outcome=AttemptOutcome.ERROR,
                started_at=started_at,
                finished_at=self.clock(),
                error_message=str(e),
                submitted_by=user,
            )
            logger.warning("Filing of report %s failed: %s", report.id, e)
            raise

        finished_at = self.clock()
        rejected = isinstance(result, FilingRejection)
        status = check_filing_outcome(report.status, rejected)
        if rejected:
            message = result.message or GENERIC_FILING_FAILURE
            self.db.create_submission_attempt(
                report_id=report.id,
                attempt_number=snapshot.attempt_number,
                outcome=AttemptOutcome.REJECTED,
                started_at=started_at,
                finished_at=finished_at,
                error_message=message,
                submitted_by=user,
            )
            self.db.update_tax_report_status(report.id, status, submitted_at=finished_at)
            logger.warning("Report %s rejected: %s", report.id, message)
        else:
            self.db.create_submission_attempt(
                report_id=report.id,
                attempt_number=snapshot.attempt_number,
                outcome=AttemptOutcome.FILED,
                started_at=started_at,
                finished_at=finished_at,
                receipt_reference=result.reference,
                submitted_by=user,
            )
            self.db.update_tax_report_status(report.id, status, submitted_at=finished_at)
            logger.info("Report %s submitted, receipt %s", report.id, result.reference)
        return self.require_report(report.id)
