"""Farmer verification routes for AgriLinker (admin only)."""
from flask import Blueprint, jsonify, request
from flask_login import login_required

from agrilinker.security import admin_required
from agrilinker.services import farmers as farmer_service

farmers_bp = Blueprint('farmers', __name__)


@farmers_bp.route('/pending-verification')
@login_required
@admin_required
def pending_verification():
    return jsonify([farmer.to_dict() for farmer in farmer_service.pending_farmers()])


@farmers_bp.route('/<int:user_id>/approve', methods=['PATCH'])
@login_required
@admin_required
def approve(user_id):
    farmer = farmer_service.approve_farmer(user_id)
    return jsonify({'success': True, 'farmer': farmer.to_dict()})


@farmers_bp.route('/<int:user_id>/reject', methods=['PATCH'])
@login_required
@admin_required
def reject(user_id):
    data = request.get_json(silent=True) or {}
    farmer = farmer_service.reject_farmer(user_id, data.get('reason'))
    return jsonify({'success': True, 'farmer': farmer.to_dict()})
