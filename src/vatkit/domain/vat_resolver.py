"""VAT treatment rules for a sale between two parties."""

import logging

from vatkit.domain.entities import (
    Party,
    SaleCategory,
    SaleContext,
    VatTreatment,
)
from vatkit.domain.errors import InvalidPartyDataError
from vatkit.domain.jurisdiction import JurisdictionSource

logger = logging.getLogger(__name__)


def validate_party(party: Party, role: str, jurisdictions: JurisdictionSource) -> None:
    """Check a party's country code and VAT registration data.

    Raises:
        UnknownJurisdictionError: If the country code is unknown
        InvalidPartyDataError: If a VAT-registered party has no VAT number
    """
    jurisdictions.require_country(party.country_code)
    if party.is_vat_registered and not party.vat_number:
        raise InvalidPartyDataError(
            f"{role.capitalize()} is marked VAT registered but has no VAT number",
            field=f"{role}.vat_number",
            value=party.vat_number,
        )


class VatRuleResolver:
    """Decides the VAT treatment of a sale.

    The rules are checked in a fixed order and the first match wins:

    0. A small-business seller (Kleinunternehmer) charges no VAT: Exempt.
    1. Customer in the seller's country: Standard, or Reduced for a
       reduced-rate category, at the seller's rate on the supply date.
    2. Customer elsewhere in the seller's union, VAT registered with a VAT
       number: ReverseCharge.
    3. Customer elsewhere in the union without VAT registration: Standard at
       the seller's rate.
    4. Customer outside the union: Zero for goods with export proof,
       otherwise OutsideScope.

    Exempt-category sales under rules 1 and 3 are Exempt.
    """

    def __init__(self, jurisdictions: JurisdictionSource):
        """Initialize resolver.

        Args:
            jurisdictions: Source of rates and union membership
        """
        self.jurisdictions = jurisdictions

    def resolve(self, seller: Party, customer: Party, context: SaleContext) -> VatTreatment:
        """Resolve the treatment of one sale.

        Args:
            seller: Party issuing the invoice
            customer: Party receiving it
            context: Supply date and category of the sale

        Returns:
            The VAT treatment

        Raises:
            UnknownJurisdictionError: If a country is unknown or no rate is in force
            InvalidPartyDataError: If a VAT-registered party has no VAT number
        """
        validate_party(seller, "seller", self.jurisdictions)
        validate_party(customer, "customer", self.jurisdictions)

        treatment = self._apply_rules(seller, customer, context)
        logger.debug(
            "Resolved %s for %s -> %s on %s",
            treatment.describe(),
            seller.country_code,
            customer.country_code,
            context.supply_date,
        )
        return treatment

    def _apply_rules(self, seller: Party, customer: Party, context: SaleContext) -> VatTreatment:
        if seller.is_small_business:
            return VatTreatment.exempt()

        if customer.country_code == seller.country_code:
            return self._domestic_treatment(seller, context)

        on = context.supply_date
        seller_union = self.jurisdictions.union_of(seller.country_code, on)
        customer_union = self.jurisdictions.union_of(customer.country_code, on)

        if seller_union is not None and customer_union == seller_union:
            if customer.is_vat_registered and customer.vat_number:
                return VatTreatment.reverse_charge()
            return self._domestic_treatment(seller, context, allow_reduced=False)

        if context.is_goods and context.has_export_proof:
            return VatTreatment.zero()
        return VatTreatment.outside_scope()

    def _domestic_treatment(
        self, seller: Party, context: SaleContext, allow_reduced: bool = True
    ) -> VatTreatment:
        """Seller-country treatment for rules 1 and 3."""
        if context.category == SaleCategory.EXEMPT:
            return VatTreatment.exempt()

        rates = self.jurisdictions.vat_rates(seller.country_code, context.supply_date)
        if (
            allow_reduced
            and context.category == SaleCategory.REDUCED
            and rates.reduced is not None
        ):
            return VatTreatment.reduced(rates.reduced)
        return VatTreatment.standard(rates.standard)
