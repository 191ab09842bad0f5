"""Business profile domain service."""

import logging
from typing import Optional

from vatkit.database.base import Database
from vatkit.domain.entities import BusinessProfile, Cadence
from vatkit.domain.errors import (
    InvalidPartyDataError,
    NotFoundError,
    UnknownJurisdictionError,
    ValidationError,
)
from vatkit.domain.jurisdiction import JurisdictionSource, StaticJurisdictionSource

logger = logging.getLogger(__name__)


class ProfileService:
    """Service for the business's VAT registration details."""

    def __init__(self, db: Database, jurisdictions: Optional[JurisdictionSource] = None):
        """Initialize profile service.

        Args:
            db: Database instance
            jurisdictions: Jurisdiction tables (bundled tables by default)
        """
        self.db = db
        self.jurisdictions = jurisdictions or StaticJurisdictionSource()

    def set_profile(
        self,
        country_code: str,
        vat_number: Optional[str] = None,
        is_vat_registered: bool = True,
        is_small_business: bool = False,
        cadence: Cadence = Cadence.QUARTERLY,
        fiscal_year_start: int = 1,
        name: Optional[str] = None,
    ) -> BusinessProfile:
        """Create or replace the business profile.

        Raises:
            UnknownJurisdictionError: If the country is unknown or has no VAT rates
            InvalidPartyDataError: If VAT registered without a VAT number
            ValidationError: If the fiscal year start is not a month
        """
        country_code = self.jurisdictions.require_country(country_code)
        if not self.jurisdictions.has_vat_rates(country_code):
            raise UnknownJurisdictionError(
                f"No VAT rates known for country '{country_code}'",
                field="country_code",
                value=country_code,
            )
        vat_number = vat_number.strip() if vat_number else None
        if is_vat_registered and not vat_number:
            raise InvalidPartyDataError(
                "A VAT-registered business needs a VAT number",
                field="vat_number",
                value=vat_number,
            )
        if not 1 <= fiscal_year_start <= 12:
            raise ValidationError(
                f"Fiscal year start must be a month 1-12, got {fiscal_year_start}",
                field="fiscal_year_start",
                value=fiscal_year_start,
            )

        profile = BusinessProfile(
            country_code=country_code,
            vat_number=vat_number,
            is_vat_registered=is_vat_registered,
            is_small_business=is_small_business,
            cadence=Cadence(cadence),
            fiscal_year_start=fiscal_year_start,
            name=name,
        )
        self.db.save_profile(profile)
        logger.info("Saved business profile for %s (%s)", country_code, profile.cadence.value)
        return profile

    def get_profile(self) -> Optional[BusinessProfile]:
        """Get the business profile, or None if not set up."""
        return self.db.get_profile()

    def require_profile(self) -> BusinessProfile:
        """Get the business profile.

        Raises:
            NotFoundError: If no profile has been saved
        """
        profile = self.db.get_profile()
        if profile is None:
            raise NotFoundError("Business profile is not set up. Run 'vatkit profile set' first.")
        return profile

    def home_currency(self) -> str:
        """Currency the business files its returns in."""
        return self.jurisdictions.home_currency(self.require_profile().country_code)
