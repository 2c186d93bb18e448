"""Cart routes for AgriLinker."""
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from agrilinker.errors import ValidationError
from agrilinker.security import ensure_self_or_admin
from agrilinker.services.orders import OrderService
from agrilinker.validators import positive_number

cart_bp = Blueprint('cart', __name__)


@cart_bp.route('/add', methods=['POST'])
@login_required
def add_to_cart():
    """Add a quantity of a product to the caller's cart."""
    data = request.get_json(silent=True) or {}
    product_id = data.get('productId')
    if product_id is None:
        raise ValidationError('productId is required')
    try:
        product_id = int(product_id)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError('productId must be a number')
    quantity = positive_number(data.get('quantity'), 'quantity')

    item = OrderService.add_to_cart(current_user.email, product_id, quantity)
    return jsonify({'success': True, 'item': item.to_dict()})


@cart_bp.route('/user/<email>')
@login_required
def user_cart(email):
    """Cart contents with totals."""
    ensure_self_or_admin(email)
    items = OrderService.cart_for(email.strip().lower())
    return jsonify({
        'success': True,
        'items': [item.to_dict() for item in items],
        **OrderService.cart_totals(items)
    })


@cart_bp.route('/remove/<int:item_id>', methods=['DELETE'])
@login_required
def remove_from_cart(item_id):
    OrderService.remove_from_cart(current_user.email, item_id)
    return jsonify({'success': True})
