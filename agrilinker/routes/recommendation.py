"""Crop recommendation route for AgriLinker."""
from flask import Blueprint, jsonify, request
from flask_login import login_required

from agrilinker.services.recommendation import recommend_crops

recommendation_bp = Blueprint('recommendation', __name__)


@recommendation_bp.route('/recommend', methods=['POST'])
@login_required
def recommend():
    """Suggest crops for a sowing month, crop type, land size and budget."""
    data = request.get_json(silent=True) or {}
    return jsonify(recommend_crops(
        data.get('month'),
        crop_type=data.get('cropType'),
        land_size=data.get('landSize'),
        budget=data.get('budget'),
    ))
