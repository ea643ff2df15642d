"""
Unit tests for the shared enumerations.

Tests:
- Role.parse() normalization of the spellings issued by login flows
- ProviderKind labels and counterpart
- EventRequestStatus terminal / open partition
"""

import pytest

from case_scheduler.models.enums import EventRequestStatus, ProviderKind, Role


class TestRoleParse:
    """Test Role.parse()."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("law_firm", Role.LAW_FIRM),
            ("lawfirm", Role.LAW_FIRM),
            ("Law-Firm", Role.LAW_FIRM),
            ("LAW FIRM", Role.LAW_FIRM),
            ("medical_provider", Role.MEDICAL_PROVIDER),
            ("MedicalProvider", Role.MEDICAL_PROVIDER),
            ("individual", Role.INDIVIDUAL),
            ("client", Role.INDIVIDUAL),
            (" Patient ", Role.INDIVIDUAL),
        ],
    )
    def test_known_spellings(self, raw, expected):
        """Every accepted spelling maps to one enum member."""
        assert Role.parse(raw) is expected

    @pytest.mark.parametrize("raw", [None, "", "admin", "law firm partner"])
    def test_unknown_roles_rejected(self, raw):
        """Empty and unknown roles raise ValueError."""
        with pytest.raises(ValueError):
            Role.parse(raw)

    def test_provider_kind(self):
        """Provider roles map to their provider kind."""
        assert Role.LAW_FIRM.provider_kind is ProviderKind.LAW_FIRM
        assert Role.MEDICAL_PROVIDER.provider_kind is ProviderKind.MEDICAL_PROVIDER
        assert Role.LAW_FIRM.is_provider
        assert not Role.INDIVIDUAL.is_provider

    def test_individual_has_no_provider_kind(self):
        with pytest.raises(ValueError):
            Role.INDIVIDUAL.provider_kind


class TestProviderKind:
    """Test ProviderKind helpers."""

    def test_counterpart(self):
        """Third parties of a law-firm negotiation are medical providers, and vice versa."""
        assert ProviderKind.LAW_FIRM.counterpart is ProviderKind.MEDICAL_PROVIDER
        assert ProviderKind.MEDICAL_PROVIDER.counterpart is ProviderKind.LAW_FIRM

    def test_individual_label(self):
        assert ProviderKind.LAW_FIRM.individual_label == "client"
        assert ProviderKind.MEDICAL_PROVIDER.individual_label == "patient"


class TestEventRequestStatus:
    """Test the status partition."""

    def test_terminal_statuses(self):
        assert EventRequestStatus.CONFIRMED.is_terminal
        assert EventRequestStatus.CANCELLED.is_terminal
        assert not EventRequestStatus.PENDING.is_terminal

    def test_open_statuses(self):
        """Open statuses are exactly the non-terminal ones."""
        assert set(EventRequestStatus.open_statuses()) == {
            EventRequestStatus.PENDING,
            EventRequestStatus.DATES_OFFERED,
            EventRequestStatus.DATES_SUBMITTED,
        }
