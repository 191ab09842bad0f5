"""Tests for the VAT rule resolver."""

import itertools
from datetime import date
from decimal import Decimal

import pytest

from vatkit.domain.entities import Party, SaleCategory, SaleContext, TreatmentKind, VatTreatment
from vatkit.domain.errors import InvalidPartyDataError, UnknownJurisdictionError
from vatkit.domain.jurisdiction import EU_MEMBERSHIP, StaticJurisdictionSource
from vatkit.domain.vat_resolver import VatRuleResolver

SUPPLY_DATE = date(2025, 3, 1)


@pytest.fixture
def resolver(jurisdictions):
    return VatRuleResolver(jurisdictions)


@pytest.fixture
def seller():
    return Party(country_code="DE", vat_number="DE123456789", is_vat_registered=True)


def _context(**kwargs):
    kwargs.setdefault("supply_date", SUPPLY_DATE)
    return SaleContext(**kwargs)


class TestDomestic:
    def test_domestic_consumer_standard_rate(self, resolver, seller):
        treatment = resolver.resolve(seller, Party(country_code="DE"), _context())
        assert treatment == VatTreatment.standard(Decimal("19"))

    def test_domestic_reduced_category(self, resolver, seller):
        treatment = resolver.resolve(
            seller, Party(country_code="DE"), _context(category=SaleCategory.REDUCED)
        )
        assert treatment == VatTreatment.reduced(Decimal("7"))

    def test_domestic_business_still_standard(self, resolver, seller):
        customer = Party(country_code="DE", vat_number="DE999999999", is_vat_registered=True)
        assert resolver.resolve(seller, customer, _context()).kind == TreatmentKind.STANDARD

    def test_domestic_exempt_category(self, resolver, seller):
        treatment = resolver.resolve(
            seller, Party(country_code="DE"), _context(category=SaleCategory.EXEMPT)
        )
        assert treatment == VatTreatment.exempt()

    def test_rate_in_force_on_supply_date(self, resolver, seller):
        treatment = resolver.resolve(
            seller, Party(country_code="DE"), _context(supply_date=date(2020, 8, 1))
        )
        assert treatment == VatTreatment.standard(Decimal("16"))

    def test_reduced_category_without_reduced_rate_falls_back_to_standard(self, resolver):
        seller = Party(country_code="DK", vat_number="DK12345678", is_vat_registered=True)
        treatment = resolver.resolve(
            seller, Party(country_code="DK"), _context(category=SaleCategory.REDUCED)
        )
        assert treatment == VatTreatment.standard(Decimal("25"))


class TestIntraUnion:
    def test_eu_business_reverse_charge(self, resolver, seller, french_business):
        assert resolver.resolve(seller, french_business, _context()) == VatTreatment.reverse_charge()

    def test_eu_consumer_charged_seller_rate(self, resolver, seller):
        treatment = resolver.resolve(seller, Party(country_code="FR"), _context())
        assert treatment == VatTreatment.standard(Decimal("19"))

    def test_eu_consumer_never_reduced(self, resolver, seller):
        treatment = resolver.resolve(
            seller, Party(country_code="FR"), _context(category=SaleCategory.REDUCED)
        )
        assert treatment == VatTreatment.standard(Decimal("19"))

    def test_vat_number_without_registration_is_consumer(self, resolver, seller):
        customer = Party(country_code="FR", vat_number="FR40303265045", is_vat_registered=False)
        assert resolver.resolve(seller, customer, _context()).kind == TreatmentKind.STANDARD

    def test_membership_is_date_effective(self, resolver, seller):
        customer = Party(country_code="GB", vat_number="GB123456789", is_vat_registered=True)
        before = resolver.resolve(seller, customer, _context(supply_date=date(2020, 12, 15)))
        after = resolver.resolve(seller, customer, _context(supply_date=date(2021, 1, 15)))
        assert before == VatTreatment.reverse_charge()
        assert after == VatTreatment.outside_scope()


class TestOutsideUnion:
    def test_services_outside_scope(self, resolver, seller):
        treatment = resolver.resolve(seller, Party(country_code="US"), _context())
        assert treatment == VatTreatment.outside_scope()

    def test_exported_goods_zero_rated(self, resolver, seller):
        context = _context(is_goods=True, has_export_proof=True)
        assert resolver.resolve(seller, Party(country_code="CH"), context) == VatTreatment.zero()

    def test_goods_without_export_proof_outside_scope(self, resolver, seller):
        context = _context(is_goods=True, has_export_proof=False)
        treatment = resolver.resolve(seller, Party(country_code="US"), context)
        assert treatment == VatTreatment.outside_scope()

    def test_seller_outside_any_union(self, resolver):
        seller = Party(country_code="CH", vat_number="CHE123456789", is_vat_registered=True)
        customer = Party(country_code="DE", vat_number="DE999999999", is_vat_registered=True)
        assert resolver.resolve(seller, customer, _context()) == VatTreatment.outside_scope()


def test_small_business_seller_charges_no_vat(resolver):
    seller = Party(country_code="DE", is_small_business=True)
    assert resolver.resolve(seller, Party(country_code="DE"), _context()) == VatTreatment.exempt()


class TestInvalidInput:
    def test_registered_customer_without_vat_number(self, resolver, seller):
        customer = Party(country_code="FR", is_vat_registered=True)
        with pytest.raises(InvalidPartyDataError) as exc_info:
            resolver.resolve(seller, customer, _context())
        assert exc_info.value.field == "customer.vat_number"

    def test_registered_seller_without_vat_number(self, resolver):
        seller = Party(country_code="DE", is_vat_registered=True)
        with pytest.raises(InvalidPartyDataError) as exc_info:
            resolver.resolve(seller, Party(country_code="DE"), _context())
        assert exc_info.value.field == "seller.vat_number"

    def test_unknown_country(self, resolver, seller):
        with pytest.raises(UnknownJurisdictionError):
            resolver.resolve(seller, Party(country_code="XX"), _context())

    def test_no_rate_in_force(self, resolver, seller):
        with pytest.raises(UnknownJurisdictionError):
            resolver.resolve(seller, Party(country_code="DE"), _context(supply_date=date(2000, 1, 1)))

    def test_custom_tables(self, seller):
        resolver = VatRuleResolver(StaticJurisdictionSource(rate_history={}))
        with pytest.raises(UnknownJurisdictionError):
            resolver.resolve(seller, Party(country_code="DE"), _context())


SELLERS = sorted(EU_MEMBERSHIP)
CUSTOMER_COUNTRIES = ["DE", "FR", "AT", "CZ", "PT", "HR", "GB", "CH", "NO", "US", "JP"]


@pytest.mark.parametrize("seller_country", SELLERS)
def test_every_valid_combination_resolves(resolver, seller_country):
    """Each valid input yields exactly one treatment, with a rate only when VAT is charged."""
    seller = Party(
        country_code=seller_country, vat_number=f"{seller_country}123", is_vat_registered=True
    )
    combinations = itertools.product(
        CUSTOMER_COUNTRIES,
        [False, True],
        list(SaleCategory),
        [False, True],
        [False, True],
    )
    for country, registered, category, is_goods, proof in combinations:
        customer = Party(
            country_code=country,
            vat_number=f"{country}999" if registered else None,
            is_vat_registered=registered,
        )
        context = _context(category=category, is_goods=is_goods, has_export_proof=proof)
        treatment = resolver.resolve(seller, customer, context)
        assert isinstance(treatment, VatTreatment)
        assert (treatment.rate > 0) == treatment.charges_vat
        if customer.country_code == seller.country_code:
            assert treatment.kind in (
                TreatmentKind.STANDARD,
                TreatmentKind.REDUCED,
                TreatmentKind.EXEMPT,
            )


@pytest.mark.parametrize("country", ["CZ", "PT", "GR", "HR"])
def test_domestic_sale_in_newer_member_states(resolver, country):
    seller = Party(country_code=country, vat_number=f"{country}123", is_vat_registered=True)
    treatment = resolver.resolve(seller, Party(country_code=country), _context())
    assert treatment.kind == TreatmentKind.STANDARD
    assert treatment.rate > 0
