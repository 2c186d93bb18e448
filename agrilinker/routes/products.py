"""Product routes for AgriLinker - browse, search and farmer listings."""
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from agrilinker.models import Product
from agrilinker.security import ensure_self_or_admin, role_required
from agrilinker.services import products as product_service
from agrilinker.services.reviews import rating_summaries

products_bp = Blueprint('products', __name__)


def _with_ratings(products):
    """Serialize products with their rating summary, fetched in one query."""
    ratings = rating_summaries([product.id for product in products])
    return [product.to_dict(rating=ratings[product.id]) for product in products]


@products_bp.route('/products')
def list_products():
    """List all products, optionally filtered by category or status."""
    query = Product.query
    category = request.args.get('category', '')
    status = request.args.get('status', '')
    if category:
        query = query.filter_by(category=category)
    if status:
        query = query.filter_by(status=status)
    products = query.order_by(Product.created_at.desc(), Product.id.desc()).all()
    return jsonify(_with_ratings(products))


@products_bp.route('/products/<int:product_id>')
def product_detail(product_id):
    product = product_service.get_product(product_id)
    return jsonify(_with_ratings([product])[0])


@products_bp.route('/products/recommended/<email>')
@login_required
def recommended(email):
    """Available products ordered by the user's search interests."""
    ensure_self_or_admin(email)
    products = product_service.recommended_products(email.strip().lower())
    return jsonify(_with_ratings(products))


@products_bp.route('/search-product', methods=['POST'])
@login_required
def search():
    """Search products by name and remember the category of the best match."""
    data = request.get_json(silent=True) or {}
    products, category = product_service.search_products(current_user.email, data.get('searchTerm'))
    return jsonify({'products': _with_ratings(products), 'trackedCategory': category})


@products_bp.route('/products', methods=['POST'])
@login_required
@role_required('farmer', 'admin')
def add_product():
    """List a new product from the multipart add-product form."""
    product = product_service.create_product(current_user.email, request.form, request.files.get('image'))
    return jsonify({'success': True, 'product': product.to_dict()}), 201


@products_bp.route('/my-products')
@login_required
def my_products():
    products = Product.query.filter_by(farmer_email=current_user.email).order_by(
        Product.created_at.desc(), Product.id.desc()
    ).all()
    return jsonify(_with_ratings(products))


@products_bp.route('/products/<int:product_id>/sold-out', methods=['PATCH'])
@login_required
def mark_sold_out(product_id):
    product = product_service.mark_sold_out(current_user, product_id)
    return jsonify({'success': True, 'product': product.to_dict()})


@products_bp.route('/products/<int:product_id>', methods=['DELETE'])
@login_required
def delete_product(product_id):
    product_service.delete_product(current_user, product_id)
    return jsonify({'success': True})
