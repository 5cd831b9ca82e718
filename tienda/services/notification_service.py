"""
Order notification service.
Emails the shop contact when an order is created, via Flask-Mail.

Failures are logged and reported as False; they never reach the caller
and never affect the order.
"""
import logging
from datetime import datetime

from flask import current_app
from flask_mail import Mail, Message

from tienda.utils.formatters import money_ar, datetime_ar, whatsapp_link

logger = logging.getLogger(__name__)

mail = Mail()


def init_mail(app):
    """Initialize Flask-Mail with app."""
    mail.init_app(app)


def _mail_enabled() -> bool:
    """Check if mail is properly configured and enabled."""
    cfg = current_app.config
    return bool(
        not cfg.get("MAIL_SUPPRESS_SEND", False)
        and cfg.get("MAIL_SERVER")
        and cfg.get("MAIL_USERNAME")
        and cfg.get("ORDER_NOTIFY_EMAIL")
    )


def build_order_summary(order, items) -> dict:
    """Subject, plain-text and HTML bodies describing a new order."""
    store = current_app.config.get('STORE_NAME', 'Tienda')
    client = order.client
    created = order.created_at or datetime.now()

    product_lines = []
    for item in items:
        size = f" (talle {item.size_code})" if item.size_code else ""
        product_lines.append(
            f"• {item.product_name}{size} x{item.quantity} - ${money_ar(item.subtotal)}"
        )

    contact = [f"Nombre: {client.name}", f"Teléfono/WhatsApp: {client.phone}"]
    if client.email:
        contact.append(f"Email: {client.email}")

    text_body = "\n".join([
        "¡Nuevo Pedido Recibido!",
        "",
        f"PEDIDO #{order.order_number}",
        f"Fecha: {datetime_ar(created)}",
        f"Estado: {order.status.value}",
        "",
        "DATOS DEL CLIENTE",
        *contact,
        "",
        "PRODUCTOS SOLICITADOS",
        *product_lines,
        "",
        f"TOTAL: ${money_ar(order.total)}",
        "",
        f"Contactar por WhatsApp: {whatsapp_link(client.phone)}",
        "",
        f"Este es un correo automático del sistema {store}",
    ])

    rows = "".join(
        f"""
        <tr>
            <td>{item.product_name}{f' ({item.size_code})' if item.size_code else ''}</td>
            <td align="center">{item.quantity}</td>
            <td align="right">${money_ar(item.subtotal)}</td>
        </tr>
        """
        for item in items
    )
    html_body = f"""
    <h2>🛒 Nuevo pedido #{order.order_number}</h2>
    <p>{'<br>'.join(contact)}</p>
    <table border="1" cellpadding="8" cellspacing="0" width="100%">
        <tr>
            <th>Producto</th>
            <th>Cantidad</th>
            <th>Subtotal</th>
        </tr>
        {rows}
    </table>
    <p><strong>Total: ${money_ar(order.total)}</strong></p>
    <p><a href="{whatsapp_link(client.phone)}">Contactar por WhatsApp</a></p>
    """

    return {
        'subject': f"🛒 Nuevo Pedido #{order.order_number} - {store}",
        'text': text_body,
        'html': html_body,
    }


def send_order_notification(order, items) -> bool:
    """
    Send the new-order email to ORDER_NOTIFY_EMAIL.

    Returns True when sent (or skipped because mail is disabled), False on
    any failure.
    """
    try:
        if not _mail_enabled():
            logger.warning(f"[MAIL DISABLED] Order notification skipped for {order.order_number}")
            return True

        summary = build_order_summary(order, items)
        recipient = current_app.config['ORDER_NOTIFY_EMAIL']
        msg = Message(
            subject=summary['subject'],
            recipients=[recipient],
            body=summary['text'],
            html=summary['html'],
        )
        mail.send(msg)
        logger.info(f"[EMAIL] ✓ Order notification for {order.order_number} sent to {recipient}")
        return True

    except Exception as e:
        logger.exception(f"[EMAIL] ✗ Error sending order notification (order was created): {e}")
        return False
