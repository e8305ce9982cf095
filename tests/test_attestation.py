"""Unit tests for attorney attestation validation."""

import pytest
from pydantic import ValidationError

from src.attorney import (
    AttorneyAttestation,
    AttorneyVerificationRequest,
    hash_bar_number,
    missing_attestations,
    validate_attestation,
)
from src.errors import AttestationIncompleteError

from conftest import COMPLETE_ATTESTATION


class TestValidateAttestation:
    """Test the four-affirmation gate."""

    def test_complete_attestation_passes(self):
        """Test that all four affirmations pass validation."""
        validate_attestation(COMPLETE_ATTESTATION)
        assert missing_attestations(COMPLETE_ATTESTATION) == []

    def test_empty_attestation_lists_every_missing_flag(self):
        """Test that defaults are false and all four are reported."""
        with pytest.raises(AttestationIncompleteError) as exc_info:
            validate_attestation(AttorneyAttestation())

        assert len(exc_info.value.missing) == 4
        assert exc_info.value.details == {"missing": exc_info.value.missing}

    @pytest.mark.parametrize("flag", [
        "is_licensed_attorney",
        "acting_on_behalf_of_client",
        "understands_privilege_requirements",
        "accepts_terms_of_service",
    ])
    def test_any_single_missing_flag_fails(self, flag):
        """Test that each affirmation is individually required."""
        attestation = COMPLETE_ATTESTATION.model_copy(update={flag: False})

        with pytest.raises(AttestationIncompleteError) as exc_info:
            validate_attestation(attestation)

        assert len(exc_info.value.missing) == 1


class TestVerificationRequest:
    """Test bar details on the verification request."""

    def test_bar_state_is_upper_cased(self):
        """Test that bar state codes are normalized."""
        request = AttorneyVerificationRequest(attestations=COMPLETE_ATTESTATION, bar_state="ca")
        assert request.bar_state == "CA"

    def test_unknown_bar_state_is_rejected(self):
        """Test that non-US codes fail model validation."""
        with pytest.raises(ValidationError):
            AttorneyVerificationRequest(attestations=COMPLETE_ATTESTATION, bar_state="ZZ")

    def test_bar_number_hash_is_stable_and_not_plaintext(self):
        """Test that the bar number hash ignores surrounding whitespace."""
        digest = hash_bar_number(" 123456 ")

        assert digest == hash_bar_number("123456")
        assert "123456" not in digest
        assert len(digest) == 64
