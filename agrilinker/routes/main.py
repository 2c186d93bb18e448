"""Main routes for AgriLinker - health check and uploaded images."""
from flask import Blueprint, current_app, jsonify, send_from_directory

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    return jsonify({'ok': True})


@main_bp.route('/uploads/<path:filename>')
def uploaded_file(filename):
    """Serve a product image saved by the add-product form."""
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], filename)
