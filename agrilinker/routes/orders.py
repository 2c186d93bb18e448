"""Checkout and order tracking routes for AgriLinker."""
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from agrilinker.errors import PermissionDenied, ValidationError
from agrilinker.security import ensure_self_or_admin
from agrilinker.services.orders import OrderService
from agrilinker.services.payment import process_payment
from agrilinker.validators import text_field

orders_bp = Blueprint('orders', __name__)


@orders_bp.route('/orders/create', methods=['POST'])
@login_required
def checkout():
    """Pay for the cart with the simulated gateway, then place the order."""
    data = request.get_json(silent=True) or {}
    payment_method = text_field(data, 'paymentMethod').lower()

    cart = OrderService.cart_for(current_user.email)
    if not cart:
        raise ValidationError('Your cart is empty!')
    amount = OrderService.cart_totals(cart)['totalAmount']
    payment = process_payment(payment_method, data, amount)

    order = OrderService.place_order(current_user.email, payment_method, payment['paymentStatus'])
    return jsonify({
        'success': True,
        'payment': payment,
        'trackingNumber': order.tracking_number,
        'order': order.to_dict(),
    }), 201


@orders_bp.route('/OrderTrack/create', methods=['POST'])
@login_required
def create_tracked_order():
    """Place an order for a payment that has already completed."""
    data = request.get_json(silent=True) or {}
    payment_method = (text_field(data, 'paymentMethod') or 'card').lower()
    order = OrderService.place_order(current_user.email, payment_method, data.get('paymentStatus'))
    return jsonify({
        'success': True,
        'trackingNumber': order.tracking_number,
        'order': order.to_dict(),
    }), 201


@orders_bp.route('/OrderTrack/track/<tracking_number>')
@login_required
def track(tracking_number):
    """Order with its delivery steps, for the tracking page."""
    order = OrderService.get_by_tracking_number(tracking_number)
    if order.user_email != current_user.email and not current_user.is_admin:
        raise PermissionDenied('You can only track your own orders')
    return jsonify({'success': True, 'order': order.to_dict(with_steps=True)})


@orders_bp.route('/OrderTrack/user/<email>')
@login_required
def user_orders(email):
    ensure_self_or_admin(email)
    orders = OrderService.orders_for(email.strip().lower())
    return jsonify({'success': True, 'orders': [order.to_dict() for order in orders]})
