"""Admin dashboard routes for AgriLinker - orders, investments and analytics."""
from flask import Blueprint, jsonify, request
from flask_login import login_required

from agrilinker.errors import ValidationError
from agrilinker.security import admin_required
from agrilinker.services.analytics import platform_analytics
from agrilinker.services.loans import investment_overview
from agrilinker.services.orders import OrderService
from agrilinker.validators import text_field

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/orders')
@login_required
@admin_required
def orders():
    """All orders with delivery and revenue totals."""
    return jsonify(OrderService.admin_overview())


@admin_bp.route('/orders/<int:order_id>/status', methods=['PATCH'])
@login_required
@admin_required
def update_order_status(order_id):
    """Advance an order to a later delivery step."""
    data = request.get_json(silent=True) or {}
    status = text_field(data, 'status')
    if not status:
        raise ValidationError('status is required')
    order = OrderService.advance_status(order_id, status)
    return jsonify({'success': True, 'order': order.to_dict()})


@admin_bp.route('/orders/<int:order_id>/deliver', methods=['PATCH'])
@login_required
@admin_required
def deliver_order(order_id):
    order = OrderService.mark_delivered(order_id)
    return jsonify({'success': True, 'order': order.to_dict()})


@admin_bp.route('/investments')
@login_required
@admin_required
def investments():
    return jsonify(investment_overview())


@admin_bp.route('/analytics')
@login_required
@admin_required
def analytics():
    return jsonify(platform_analytics())
