import pytest

from instabill.config import Settings, load_settings
from instabill.domain.errors import ValidationError


def test_defaults_when_environment_is_empty():
    assert load_settings({}) == Settings()


def test_environment_overrides():
    s = load_settings({
        "INSTABILL_TAX_RATE": "0.05",
        "INSTABILL_DEDUP_WINDOW": "1.5",
        "INSTABILL_REQUIRE_BUDGET": "no",
        "INSTABILL_ADMIN_PIN": "9876",
        "INSTABILL_IDENTIFY_URLS": "https://a/{code}, ,https://b/{code}",
    })

    assert s.tax_rate == 0.05
    assert s.dedup_window_seconds == 1.5
    assert s.require_budget_before_scan is False
    assert s.default_admin_pin == "9876"
    assert s.identification_urls == ("https://a/{code}", "https://b/{code}")


@pytest.mark.parametrize("raw", ["abc", "-1"])
def test_invalid_numbers_are_rejected(raw):
    with pytest.raises(ValidationError, match="INSTABILL_TAX_RATE"):
        load_settings({"INSTABILL_TAX_RATE": raw})
