"""Fixed user-facing strings, per narrative locale.

Policy messages and sentinels end up in persisted results and in the prompt,
so they follow the locale the narrative is written in.
"""

from typing import Iterable

DEFAULT_LOCALE = "he"

MESSAGES: dict[str, dict[str, str]] = {
    "he": {
        "not_provided": "לא סופק",
        "none": "אין",
        "currency_not_allowed": "מטבע ההצעה ({currency}) אינו מותר. מטבעות מותרים: {allowed}",
        "upfront_exceeds_policy": (
            "תנאי התשלום מפרים את מדיניות הארגון: מקדמה של {upfront:g}% "
            "חורגת מהמקסימום המותר ({maximum:g}%)"
        ),
        "vendor_incomplete": "פרופיל הספק חסר: לא נמצא שם ספק/חברה",
        "policy_knockout_fallback": "הפרת מדיניות ארגונית",
        "mandatory_items_missing": "חסרים יותר מ-50% מפריטי החובה שבבקשה",
        "locale_name": "Hebrew",
    },
    "en": {
        "not_provided": "Not provided",
        "none": "None",
        "currency_not_allowed": "Proposal currency ({currency}) not allowed. Allowed: {allowed}",
        "upfront_exceeds_policy": (
            "Payment terms violate organization policy: upfront {upfront:g}% "
            "exceeds max allowed ({maximum:g}%)"
        ),
        "vendor_incomplete": "Vendor profile incomplete: missing vendor/company name",
        "policy_knockout_fallback": "Organizational policy violation",
        "mandatory_items_missing": "Over half of the mandatory request items are missing",
        "locale_name": "English",
    },
}

SUPPORTED_LOCALES = tuple(MESSAGES)


class MessageCatalog:
    """Lookup of the fixed strings for one locale."""

    def __init__(self, locale: str = DEFAULT_LOCALE) -> None:
        if locale not in MESSAGES:
            raise ValueError(
                f"Unsupported narrative locale: {locale}. "
                f"Supported: {', '.join(SUPPORTED_LOCALES)}"
            )
        self.locale = locale
        self._messages = MESSAGES[locale]

    @property
    def not_provided(self) -> str:
        return self._messages["not_provided"]

    @property
    def none(self) -> str:
        return self._messages["none"]

    @property
    def language(self) -> str:
        return self._messages["locale_name"]

    def currency_not_allowed(self, currency: str, allowed: Iterable[str]) -> str:
        return self._messages["currency_not_allowed"].format(
            currency=currency, allowed=", ".join(allowed)
        )

    def upfront_exceeds_policy(self, upfront: float, maximum: float) -> str:
        return self._messages["upfront_exceeds_policy"].format(upfront=upfront, maximum=maximum)

    def vendor_incomplete(self) -> str:
        return self._messages["vendor_incomplete"]

    def policy_knockout_fallback(self) -> str:
        return self._messages["policy_knockout_fallback"]

    def mandatory_items_missing(self) -> str:
        return self._messages["mandatory_items_missing"]
