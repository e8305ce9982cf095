"""
Attorney attestation models and validation.

An attorney session is only granted when all four affirmations are given.
Bar details are optional; when supplied, the bar number is hashed and the
plaintext is never kept.
"""

import hashlib
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from src.errors import AttestationIncompleteError


US_BAR_STATES: dict[str, str] = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware",
    "DC": "District of Columbia", "FL": "Florida", "GA": "Georgia", "HI": "Hawaii",
    "ID": "Idaho", "IL": "Illinois", "IN": "Indiana", "IA": "Iowa",
    "KS": "Kansas", "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine",
    "MD": "Maryland", "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota",
    "MS": "Mississippi", "MO": "Missouri", "MT": "Montana", "NE": "Nebraska",
    "NV": "Nevada", "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico",
    "NY": "New York", "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio",
    "OK": "Oklahoma", "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island",
    "SC": "South Carolina", "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas",
    "UT": "Utah", "VT": "Vermont", "VA": "Virginia", "WA": "Washington",
    "WV": "West Virginia", "WI": "Wisconsin", "WY": "Wyoming",
    "AS": "American Samoa", "GU": "Guam", "MP": "Northern Mariana Islands",
    "PR": "Puerto Rico", "VI": "U.S. Virgin Islands",
}


# Field name -> message shown when the affirmation is missing
ATTESTATION_MESSAGES: dict[str, str] = {
    "is_licensed_attorney": "You must attest that you are a licensed attorney",
    "acting_on_behalf_of_client": "You must attest that you are acting on behalf of a client",
    "understands_privilege_requirements": "You must attest that you understand privilege requirements",
    "accepts_terms_of_service": "You must accept the Terms of Service",
}


class AttorneyAttestation(BaseModel):
    """The four self-certified affirmations required for a session."""
    is_licensed_attorney: bool = Field(
        default=False,
        description="Attorney is licensed to practice law"
    )
    acting_on_behalf_of_client: bool = Field(
        default=False,
        description="Attorney is acting for a client"
    )
    understands_privilege_requirements: bool = Field(
        default=False,
        description="Attorney understands privilege implications"
    )
    accepts_terms_of_service: bool = Field(
        default=False,
        description="Attorney accepts the terms of service"
    )


class AttorneyVerificationRequest(BaseModel):
    """Attestation plus optional bar membership details."""
    attestations: AttorneyAttestation = Field(
        description="The four required affirmations"
    )
    bar_state: Optional[str] = Field(
        default=None,
        description="Two-letter code of the admitting bar"
    )
    bar_number: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=50,
        description="Bar number; hashed on receipt, never stored in plaintext"
    )

    @field_validator('bar_state')
    @classmethod
    def validate_bar_state(cls, v: Optional[str]) -> Optional[str]:
        """Normalize and check the bar state code."""
        if v is None:
            return v
        code = v.strip().upper()
        if code not in US_BAR_STATES:
            raise ValueError(f"bar_state must be a US state or territory code, got '{v}'")
        return code


def missing_attestations(attestation: AttorneyAttestation) -> list[str]:
    """Return one message per affirmation that is not true."""
    return [
        message
        for field_name, message in ATTESTATION_MESSAGES.items()
        if getattr(attestation, field_name) is not True
    ]


def validate_attestation(attestation: AttorneyAttestation) -> None:
    """
    Check that every affirmation was given.

    Raises:
        AttestationIncompleteError: Listing all missing affirmations
    """
    missing = missing_attestations(attestation)
    if missing:
        raise AttestationIncompleteError(missing)


def hash_bar_number(bar_number: str) -> str:
    """SHA-256 hex digest of a trimmed bar number."""
    return hashlib.sha256(bar_number.strip().encode("utf-8")).hexdigest()
