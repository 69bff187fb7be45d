"""ISO 4217 currency lookups"""

import pycountry


def currency_alpha_code(numeric_code: int) -> str:
    """ISO 4217 alphabetic code for a numeric one, e.g. 980 -> "UAH"

    Unknown codes come back as the number itself.
    """
    currency = pycountry.currencies.get(numeric=f"{numeric_code:03d}")
    if currency is None:
        return str(numeric_code)
    return currency.alpha_3
