"""Reference data for the countries the setup templates know about."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from commerce_kernel.domain.tax_types import TaxType


@dataclass(frozen=True)
class StateInfo:
    name: str
    code: str
    gst_state_code: str | None = None  # India only


@dataclass(frozen=True)
class StateSalesTax:
    name: str
    code: str
    rate_percent: Decimal


@dataclass(frozen=True)
class ProvinceTax:
    name: str
    code: str
    tax_type: TaxType
    rate_percent: Decimal


INDIA_STATES: tuple[StateInfo, ...] = (
    StateInfo("Andhra Pradesh", "AP", "37"),
    StateInfo("Arunachal Pradesh", "AR", "12"),
    StateInfo("Assam", "AS", "18"),
    StateInfo("Bihar", "BR", "10"),
    StateInfo("Chhattisgarh", "CG", "22"),
    StateInfo("Goa", "GA", "30"),
    StateInfo("Gujarat", "GJ", "24"),
    StateInfo("Haryana", "HR", "06"),
    StateInfo("Himachal Pradesh", "HP", "02"),
    StateInfo("Jharkhand", "JH", "20"),
    StateInfo("Karnataka", "KA", "29"),
    StateInfo("Kerala", "KL", "32"),
    StateInfo("Madhya Pradesh", "MP", "23"),
    StateInfo("Maharashtra", "MH", "27"),
    StateInfo("Manipur", "MN", "14"),
    StateInfo("Meghalaya", "ML", "17"),
    StateInfo("Mizoram", "MZ", "15"),
    StateInfo("Nagaland", "NL", "13"),
    StateInfo("Odisha", "OD", "21"),
    StateInfo("Punjab", "PB", "03"),
    StateInfo("Rajasthan", "RJ", "08"),
    StateInfo("Sikkim", "SK", "11"),
    StateInfo("Tamil Nadu", "TN", "33"),
    StateInfo("Telangana", "TS", "36"),
    StateInfo("Tripura", "TR", "16"),
    StateInfo("Uttar Pradesh", "UP", "09"),
    StateInfo("Uttarakhand", "UK", "05"),
    StateInfo("West Bengal", "WB", "19"),
    # Union territories
    StateInfo("Andaman and Nicobar Islands", "AN", "35"),
    StateInfo("Chandigarh", "CH", "04"),
    StateInfo("Dadra and Nagar Haveli and Daman and Diu", "DD", "26"),
    StateInfo("Delhi", "DL", "07"),
    StateInfo("Jammu and Kashmir", "JK", "01"),
    StateInfo("Ladakh", "LA", "38"),
    StateInfo("Lakshadweep", "LD", "31"),
    StateInfo("Puducherry", "PY", "34"),
)

INDIA_GST_SLABS: tuple[Decimal, ...] = (
    Decimal("5"), Decimal("12"), Decimal("18"), Decimal("28"),
)


def _d(value: str) -> Decimal:
    return Decimal(value)


# State-level base rates only; local add-ons are configured per store.
US_STATE_SALES_TAX: tuple[StateSalesTax, ...] = (
    StateSalesTax("Alabama", "AL", _d("4")),
    StateSalesTax("Alaska", "AK", _d("0")),
    StateSalesTax("Arizona", "AZ", _d("5.6")),
    StateSalesTax("Arkansas", "AR", _d("6.5")),
    StateSalesTax("California", "CA", _d("7.25")),
    StateSalesTax("Colorado", "CO", _d("2.9")),
    StateSalesTax("Connecticut", "CT", _d("6.35")),
    StateSalesTax("Delaware", "DE", _d("0")),
    StateSalesTax("Florida", "FL", _d("6")),
    StateSalesTax("Georgia", "GA", _d("4")),
    StateSalesTax("Hawaii", "HI", _d("4")),
    StateSalesTax("Idaho", "ID", _d("6")),
    StateSalesTax("Illinois", "IL", _d("6.25")),
    StateSalesTax("Indiana", "IN", _d("7")),
    StateSalesTax("Iowa", "IA", _d("6")),
    StateSalesTax("Kansas", "KS", _d("6.5")),
    StateSalesTax("Kentucky", "KY", _d("6")),
    StateSalesTax("Louisiana", "LA", _d("4.45")),
    StateSalesTax("Maine", "ME", _d("5.5")),
    StateSalesTax("Maryland", "MD", _d("6")),
    StateSalesTax("Massachusetts", "MA", _d("6.25")),
    StateSalesTax("Michigan", "MI", _d("6")),
    StateSalesTax("Minnesota", "MN", _d("6.875")),
    StateSalesTax("Mississippi", "MS", _d("7")),
    StateSalesTax("Missouri", "MO", _d("4.225")),
    StateSalesTax("Montana", "MT", _d("0")),
    StateSalesTax("Nebraska", "NE", _d("5.5")),
    StateSalesTax("Nevada", "NV", _d("6.85")),
    StateSalesTax("New Hampshire", "NH", _d("0")),
    StateSalesTax("New Jersey", "NJ", _d("6.625")),
    StateSalesTax("New Mexico", "NM", _d("5.125")),
    StateSalesTax("New York", "NY", _d("4")),
    StateSalesTax("North Carolina", "NC", _d("4.75")),
    StateSalesTax("North Dakota", "ND", _d("5")),
    StateSalesTax("Ohio", "OH", _d("5.75")),
    StateSalesTax("Oklahoma", "OK", _d("4.5")),
    StateSalesTax("Oregon", "OR", _d("0")),
    StateSalesTax("Pennsylvania", "PA", _d("6")),
    StateSalesTax("Rhode Island", "RI", _d("7")),
    StateSalesTax("South Carolina", "SC", _d("6")),
    StateSalesTax("South Dakota", "SD", _d("4.5")),
    StateSalesTax("Tennessee", "TN", _d("7")),
    StateSalesTax("Texas", "TX", _d("6.25")),
    StateSalesTax("Utah", "UT", _d("6.1")),
    StateSalesTax("Vermont", "VT", _d("6")),
    StateSalesTax("Virginia", "VA", _d("5.3")),
    StateSalesTax("Washington", "WA", _d("6.5")),
    StateSalesTax("West Virginia", "WV", _d("6")),
    StateSalesTax("Wisconsin", "WI", _d("5")),
    StateSalesTax("Wyoming", "WY", _d("4")),
)

CANADA_PROVINCES: tuple[ProvinceTax, ...] = (
    ProvinceTax("Ontario", "ON", TaxType.HST, _d("13")),
    ProvinceTax("Nova Scotia", "NS", TaxType.HST, _d("15")),
    ProvinceTax("New Brunswick", "NB", TaxType.HST, _d("15")),
    ProvinceTax("Prince Edward Island", "PE", TaxType.HST, _d("15")),
    ProvinceTax("Newfoundland and Labrador", "NL", TaxType.HST, _d("15")),
    ProvinceTax("British Columbia", "BC", TaxType.PST, _d("7")),
    ProvinceTax("Saskatchewan", "SK", TaxType.PST, _d("6")),
    ProvinceTax("Manitoba", "MB", TaxType.PST, _d("7")),
    ProvinceTax("Quebec", "QC", TaxType.QST, _d("9.975")),
    ProvinceTax("Alberta", "AB", TaxType.GST, _d("0")),
    ProvinceTax("Northwest Territories", "NT", TaxType.GST, _d("0")),
    ProvinceTax("Nunavut", "NU", TaxType.GST, _d("0")),
    ProvinceTax("Yukon", "YT", TaxType.GST, _d("0")),
)

UK_REGIONS: tuple[StateInfo, ...] = (
    StateInfo("England", "ENG"),
    StateInfo("Scotland", "SCO"),
    StateInfo("Wales", "WAL"),
    StateInfo("Northern Ireland", "NIR"),
)

AUSTRALIA_STATES: tuple[StateInfo, ...] = (
    StateInfo("New South Wales", "NSW"),
    StateInfo("Victoria", "VIC"),
    StateInfo("Queensland", "QLD"),
    StateInfo("South Australia", "SA"),
    StateInfo("Western Australia", "WA"),
    StateInfo("Tasmania", "TAS"),
    StateInfo("Northern Territory", "NT"),
    StateInfo("Australian Capital Territory", "ACT"),
)

COUNTRY_NAME_TO_CODE: dict[str, str] = {
    "India": "IN",
    "United States": "US",
    "United States of America": "US",
    "USA": "US",
    "United Kingdom": "GB",
    "UK": "GB",
    "Great Britain": "GB",
    "Australia": "AU",
    "Canada": "CA",
    "Germany": "DE",
    "France": "FR",
    "Italy": "IT",
    "Spain": "ES",
    "Netherlands": "NL",
    "New Zealand": "NZ",
    "Singapore": "SG",
}

TEMPLATE_COUNTRIES: frozenset[str] = frozenset({"IN", "US", "GB", "AU", "CA"})


def country_code_for(country: str | None) -> str | None:
    """Two-letter code for a country name or code, or None when unknown."""
    if not country:
        return None
    value = country.strip()
    if value.upper() in TEMPLATE_COUNTRIES:
        return value.upper()
    for name, code in COUNTRY_NAME_TO_CODE.items():
        if name.casefold() == value.casefold():
            return code
    if len(value) == 2 and value.isalpha():
        return value.upper()
    return None


def india_state(code: str) -> StateInfo | None:
    """Look up an Indian state by postal code ("MH") or GST code ("27")."""
    key = code.strip().upper()
    for state in INDIA_STATES:
        if state.code == key or state.gst_state_code == key:
            return state
    return None
