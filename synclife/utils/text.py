"""
Utilidades de texto - Funciones comunes para manipulación de strings.

Formateo de moneda y búsqueda por palabra clave.
"""

import re
from decimal import Decimal, ROUND_HALF_UP

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def format_brl(amount: Decimal | float | int) -> str:
    """
    Formatea un monto como Real brasileño.

    >>> format_brl(Decimal("1234.5"))
    'R$ 1.234,50'
    """
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    integer, _, cents = f"{abs(value):,.2f}".partition(".")
    return f"{sign}R$ {integer.replace(',', '.')},{cents}"


def contains_keyword(text: str | None, keyword: str | None) -> bool:
    """Búsqueda case-insensitive por substring."""
    if not text or not keyword:
        return False
    return keyword.lower() in text.lower()


def camel_to_snake(name: str) -> str:
    """Convierte `cardKeyword` en `card_keyword`."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()
