from core.extensions import mail
from core.errors import NotificationError
from core.imports import Message, current_app, datetime, render_template, threading


def build_order_email(order):
    subject = f"Order Confirmation - Order #{order.id}"
    body = render_template(
        "emails/order_placed.html",
        order=order,
        store_name=current_app.config.get("STORE_NAME"),
        year=datetime.now().year,
    )
    msg = Message(subject=subject, recipients=[order.customer_email])
    msg.html = body
    return msg


def _send_in_background(app, msg, order_id):
    with app.app_context():
        try:
            mail.send(msg)
        except Exception:
            app.logger.exception("Failed to send order email for order %s", order_id)


def send_order_confirmation(order):
    """Render and hand the confirmation to the mail server.

    The message is rendered in the caller's context while the order is still
    loaded. With ORDER_EMAIL_ASYNC only the SMTP round trip moves to a
    daemon thread.
    """
    app = current_app._get_current_object()
    try:
        msg = build_order_email(order)
        if app.config.get("ORDER_EMAIL_ASYNC"):
            threading.Thread(
                target=_send_in_background, args=(app, msg, order.id), daemon=True
            ).start()
        else:
            mail.send(msg)
    except Exception as e:
        raise NotificationError(f"Could not send confirmation for order {order.id}: {e}") from e


def notify_order_placed(order):
    """Fire-and-forget confirmation. Returns False on failure, never raises."""
    try:
        send_order_confirmation(order)
    except NotificationError:
        current_app.logger.exception("Failed to send order email for order %s", order.id)
        return False
    return True
