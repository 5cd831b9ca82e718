"""
Utilidades de formateo para mensajes al cliente y al vendedor.
Formatos de números y fechas en estilo argentino.
"""
import re
from decimal import Decimal, InvalidOperation
from datetime import datetime
from typing import Union


def money_ar(value: Union[int, float, Decimal, str, None]) -> str:
    """
    Formatea un monto monetario en estilo argentino con exactamente 2 decimales.
    Punto para miles y coma para decimales.

    Examples:
        money_ar(1500) -> "1.500,00"
        money_ar(Decimal('260.5')) -> "260,50"
        money_ar(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        normalized = str(value).replace(",", ".")
        num = Decimal(normalized).quantize(Decimal('0.01'))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    sign = "-" if num < 0 else ""
    num = abs(num)

    integer_part, decimal_part = f"{num:.2f}".split(".")
    reversed_int = integer_part[::-1]
    groups = [reversed_int[i:i+3] for i in range(0, len(reversed_int), 3)]
    integer_formatted = '.'.join(groups)[::-1]

    return f"{sign}{integer_formatted},{decimal_part}"


def datetime_ar(value: Union[datetime, None], with_time: bool = True) -> str:
    """
    Formatea un datetime en formato argentino: DD/MM/YYYY HH:MM

    Examples:
        datetime_ar(datetime(2026, 1, 12, 15, 30)) -> "12/01/2026 15:30"
    """
    if not isinstance(value, datetime):
        return "-"

    if with_time:
        return value.strftime("%d/%m/%Y %H:%M")
    return value.strftime("%d/%m/%Y")


def whatsapp_link(phone: str) -> str:
    """Link wa.me con solo los dígitos del teléfono."""
    digits = re.sub(r'\D', '', phone or '')
    return f"https://wa.me/{digits}"
