"""Invoice line and totals calculation.

VAT is computed on the summed subtotal and rounded once, with banker's
rounding. Rounding each line and summing the results gives different cents
on some inputs, so local previews and the authoritative calculation must
both go through ``compute_totals``.
"""

from typing import Iterable

from vatkit.domain.entities import Invoice, LineItem, Totals, VatTreatment
from vatkit.domain.money import Money


def compute_totals(
    lines: Iterable[LineItem],
    treatment: VatTreatment,
    currency: str,
) -> Totals:
    """Compute subtotal, VAT and total of a set of lines.

    Args:
        lines: Line items; lines flagged ``destroy`` are ignored
        treatment: VAT treatment applied to the whole set
        currency: Currency of the lines and of the result

    Returns:
        Totals with all three amounts in ``currency``; zero for no lines

    Raises:
        CurrencyMismatchError: If a line is not in ``currency``
    """
    active = [line for line in lines if not line.destroy]
    subtotal = Money.zero(currency)
    for line in active:
        subtotal = subtotal.add(line.net_amount)

    if treatment.charges_vat:
        vat_amount = subtotal.percentage_of(treatment.rate).round_to_minor_unit()
    else:
        vat_amount = Money.zero(currency)

    return Totals(
        subtotal=subtotal,
        vat_amount=vat_amount,
        total=subtotal.add(vat_amount),
        line_count=len(active),
    )


def invoice_totals(invoice: Invoice) -> Totals:
    """Totals of an invoice, derived from its current lines."""
    return compute_totals(invoice.lines, invoice.vat_treatment, invoice.currency)
