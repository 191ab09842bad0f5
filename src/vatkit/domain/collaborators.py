"""Interfaces of external collaborators: authorization and filing."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from vatkit.domain.entities import (
    TaxReport,
    VatFinancialData,
    ZmFinancialData,
)

CAPABILITY_VAT_SUBMISSION = "vat_submission"
CAPABILITY_INVOICE_EDIT = "invoice_edit"
CAPABILITIES = (CAPABILITY_VAT_SUBMISSION, CAPABILITY_INVOICE_EDIT)


class Authorizer(ABC):
    """Decides whether a user holds a capability."""

    @abstractmethod
    def is_entitled(self, user: Optional[str], capability: str) -> bool:
        pass


class StaticAuthorizer(Authorizer):
    """Grants a fixed set of capabilities to every user."""

    def __init__(self, capabilities: Iterable[str] = CAPABILITIES):
        self.capabilities = frozenset(capabilities)

    def is_entitled(self, user: Optional[str], capability: str) -> bool:
        return capability in self.capabilities


@dataclass(frozen=True)
class FilingSnapshot:
    """Finalized report content handed to the filer."""

    report: TaxReport
    financial_data: Union[VatFinancialData, ZmFinancialData]
    seller_vat_number: Optional[str]
    attempt_number: int


@dataclass(frozen=True)
class FilingReceipt:
    """Successful filing."""

    reference: str
    message: Optional[str] = None


@dataclass(frozen=True)
class FilingRejection:
    """Structured failure returned by the authority.

    ``message`` is the authority's text, kept verbatim.
    """

    message: Optional[str] = None
    code: Optional[str] = None


@dataclass(frozen=True)
class PreviewArtifact:
    """Document produced by a test submission."""

    content: bytes
    media_type: str = "text/plain"
    filename: Optional[str] = None


FilingResult = Union[FilingReceipt, FilingRejection]


class Filer(ABC):
    """Tax authority integration.

    ``file`` returns a receipt or a rejection, and raises
    FilingUnavailableError when the authority cannot be reached.
    """

    @abstractmethod
    def file(self, snapshot: FilingSnapshot) -> FilingResult:
        pass

    @abstractmethod
    def test_file(self, snapshot: FilingSnapshot) -> PreviewArtifact:
        pass


def render_snapshot(snapshot: FilingSnapshot) -> str:
    """Plain-text rendering of a report snapshot."""
    report = snapshot.report
    data = snapshot.financial_data
    lines = [
        f"{report.kind.value.upper()} report {report.period_label}",
        f"Period: {report.period_start.isoformat()} - {report.period_end.isoformat()}",
        f"Due: {report.due_date.isoformat()}",
    ]
    if snapshot.seller_vat_number:
        lines.append(f"VAT number: {snapshot.seller_vat_number}")
    if isinstance(data, VatFinancialData):
        lines.extend(
            [
                f"Domestic net: {data.domestic_net}",
                f"Domestic VAT: {data.domestic_vat}",
                f"EU B2B net: {data.eu_b2b_net}",
                f"Non-EU net: {data.non_eu_net}",
                f"Exempt net: {data.exempt_net}",
                f"Input VAT: {data.input_vat}",
                f"EU expense net: {data.eu_expense_net}",
                f"EU expense VAT: {data.eu_expense_vat}",
                f"Remaining VAT: {data.remaining_vat}",
            ]
        )
    else:
        lines.append(f"EU B2B sales: {data.with_vat_number_amount}")
        for line in data.lines:
            lines.append(f"  {line.vat_number} ({line.country_code}): {line.amount}")
    return "\n".join(lines) + "\n"


class ManualFiler(Filer):
    """Filer for reports filed by hand through the authority's portal.

    ``file`` records the receipt reference the user obtained there.
    """

    def __init__(self, receipt_reference: Optional[str] = None):
        self.receipt_reference = receipt_reference

    def file(self, snapshot: FilingSnapshot) -> FilingResult:
        reference = self.receipt_reference or (
            f"manual-{snapshot.report.kind.value}-{snapshot.report.id}-{snapshot.attempt_number}"
        )
        return FilingReceipt(reference=reference, message="Recorded manual filing")

    def test_file(self, snapshot: FilingSnapshot) -> PreviewArtifact:
        report = snapshot.report
        filename = f"{report.kind.value}-{report.period_start.isoformat()}-preview.txt"
        return PreviewArtifact(
            content=render_snapshot(snapshot).encode("utf-8"), filename=filename
        )
