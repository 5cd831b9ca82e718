"""HTTP blueprints (thin JSON layer over the services)."""
from flask import request

from tienda.exceptions import BusinessLogicError


def get_payload() -> dict:
    """JSON body, or form fields for classic form posts."""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def parse_int(value, field: str, default=None):
    if value is None or value == '':
        if default is not None:
            return default
        raise BusinessLogicError(f'Falta el campo {field}')
    try:
        return int(value)
    except (ValueError, TypeError):
        raise BusinessLogicError(f'Datos inválidos: {field} no es numérico')
