"""
Tests for product listings, search tracking and recommendations.
"""
import io

import pytest

from agrilinker.models import OrderItem, Review, SearchActivity
from tests.conftest import make_product


class TestListing:

    def test_list_is_public_and_carries_ratings(self, client, product):
        resp = client.get('/api/products')
        assert resp.status_code == 200
        data = resp.get_json()
        assert len(data) == 1
        assert data[0]['name'] == 'Fresh Tomato'
        assert data[0]['quantity'] == {'value': 10, 'unit': 'kg'}
        assert data[0]['averageRating'] == 0
        assert data[0]['reviewCount'] == 0

    def test_filter_by_category(self, app, client, farmer):
        make_product(app, farmer.email, name='Rice', category='grains')
        make_product(app, farmer.email, name='Mango', category='fruits')
        data = client.get('/api/products?category=fruits').get_json()
        assert [p['name'] for p in data] == ['Mango']

    def test_detail_404(self, client):
        resp = client.get('/api/products/999')
        assert resp.status_code == 404
        assert resp.get_json() == {'success': False, 'message': 'Product not found'}

    def test_zero_stock_is_out_of_stock(self, app, client, farmer):
        product_id = make_product(app, farmer.email, quantity=0)
        assert client.get(f'/api/products/{product_id}').get_json()['status'] == 'out-of-stock'


class TestAddProduct:

    def form(self, **overrides):
        data = {
            'name': 'Green Chili',
            'category': 'spices',
            'quantityValue': '25',
            'quantityUnit': 'kg',
            'price': '120',
            'image': (io.BytesIO(b'fake image bytes'), 'chili.png'),
        }
        data.update(overrides)
        return data

    def test_farmer_lists_product_with_image(self, app, client, farmer):
        resp = client.post('/api/products', headers=farmer.headers, data=self.form(),
                           content_type='multipart/form-data')
        assert resp.status_code == 201
        product = resp.get_json()['product']
        assert product['farmerEmail'] == farmer.email
        assert product['status'] == 'available'
        assert product['image'].startswith('/uploads/')
        assert product['image'].endswith('_chili.png')

        served = client.get(product['image'])
        assert served.status_code == 200
        assert served.data == b'fake image bytes'

    def test_buyer_cannot_list(self, client, buyer):
        resp = client.post('/api/products', headers=buyer.headers, data=self.form(),
                           content_type='multipart/form-data')
        assert resp.status_code == 403

    def test_image_required(self, client, farmer):
        form = self.form()
        del form['image']
        resp = client.post('/api/products', headers=farmer.headers, data=form,
                           content_type='multipart/form-data')
        assert resp.status_code == 400
        assert resp.get_json()['message'] == 'Please select an image'

    def test_rejects_bad_extension(self, client, farmer):
        resp = client.post('/api/products', headers=farmer.headers,
                           data=self.form(image=(io.BytesIO(b'x'), 'script.exe')),
                           content_type='multipart/form-data')
        assert resp.status_code == 400

    def test_rejects_non_positive_price(self, client, farmer):
        resp = client.post('/api/products', headers=farmer.headers, data=self.form(price='0'),
                           content_type='multipart/form-data')
        assert resp.status_code == 400
        assert resp.get_json()['message'] == 'price must be greater than zero'

    def test_rejects_unknown_category(self, client, farmer):
        resp = client.post('/api/products', headers=farmer.headers, data=self.form(category='toys'),
                           content_type='multipart/form-data')
        assert resp.status_code == 400


class TestSearch:

    def test_search_tracks_category_of_first_match(self, app, client, buyer, farmer):
        make_product(app, farmer.email, name='Tomato Sauce', category='others')
        make_product(app, farmer.email, name='Cherry Tomato', category='vegetables')

        resp = client.post('/api/search-product', headers=buyer.headers, json={'searchTerm': ' tomato '})
        assert resp.status_code == 200
        data = resp.get_json()
        assert [p['name'] for p in data['products']] == ['Cherry Tomato', 'Tomato Sauce']
        assert data['trackedCategory'] == 'vegetables'

        client.post('/api/search-product', headers=buyer.headers, json={'searchTerm': 'cherry'})
        with app.app_context():
            activity = SearchActivity.query.filter_by(user_email=buyer.email).one()
            assert activity.category == 'vegetables'
            assert activity.count == 2

    def test_empty_term(self, client, buyer):
        resp = client.post('/api/search-product', headers=buyer.headers, json={'searchTerm': '   '})
        assert resp.status_code == 400
        assert resp.get_json()['message'] == 'Please enter a search term'

    def test_no_match_is_404(self, client, buyer, product):
        resp = client.post('/api/search-product', headers=buyer.headers, json={'searchTerm': 'durian'})
        assert resp.status_code == 404
        assert resp.get_json()['message'] == 'No products found with that name!'

    def test_search_requires_login(self, client, product):
        assert client.post('/api/search-product', json={'searchTerm': 'tomato'}).status_code == 401


class TestRecommended:

    def test_searched_category_comes_first(self, app, client, buyer, farmer):
        make_product(app, farmer.email, name='Miniket Rice', category='grains')
        make_product(app, farmer.email, name='Himsagar Mango', category='fruits')
        make_product(app, farmer.email, name='Sold Lentil', category='pulses', status='sold-out')

        client.post('/api/search-product', headers=buyer.headers, json={'searchTerm': 'rice'})

        data = client.get(f'/api/products/recommended/{buyer.email}', headers=buyer.headers).get_json()
        assert [p['name'] for p in data] == ['Miniket Rice', 'Himsagar Mango']

    def test_without_searches_newest_first(self, app, client, buyer, farmer):
        make_product(app, farmer.email, name='First')
        make_product(app, farmer.email, name='Second')
        data = client.get(f'/api/products/recommended/{buyer.email}', headers=buyer.headers).get_json()
        assert [p['name'] for p in data] == ['Second', 'First']

    def test_other_users_recommendations_forbidden(self, client, buyer, farmer):
        resp = client.get(f'/api/products/recommended/{farmer.email}', headers=buyer.headers)
        assert resp.status_code == 403


class TestFarmerManagement:

    def test_my_products(self, app, client, farmer):
        make_product(app, farmer.email, name='Mine')
        make_product(app, 'someone@else.com', name='Theirs')
        data = client.get('/api/my-products', headers=farmer.headers).get_json()
        assert [p['name'] for p in data] == ['Mine']

    def test_mark_sold_out_sticks(self, client, farmer, product):
        resp = client.patch(f'/api/products/{product}/sold-out', headers=farmer.headers)
        assert resp.status_code == 200
        assert resp.get_json()['product']['status'] == 'sold-out'

    def test_only_owner_or_admin_deletes(self, client, buyer, admin, product):
        assert client.delete(f'/api/products/{product}', headers=buyer.headers).status_code == 403
        assert client.delete(f'/api/products/{product}', headers=admin.headers).status_code == 200
        assert client.get(f'/api/products/{product}').status_code == 404

    def test_delete_clears_cart_lines(self, client, buyer, farmer, product):
        client.post('/api/cart/add', headers=buyer.headers, json={'productId': product, 'quantity': 1})
        client.delete(f'/api/products/{product}', headers=farmer.headers)
        cart = client.get(f'/api/cart/user/{buyer.email}', headers=buyer.headers).get_json()
        assert cart['items'] == []


class TestSearchWildcards:

    def test_percent_and_underscore_match_literally(self, app, client, buyer, farmer):
        make_product(app, farmer.email, name='Fresh Tomato')
        make_product(app, farmer.email, name='Mango 50% Off')

        resp = client.post('/api/search-product', headers=buyer.headers, json={'searchTerm': '%'})
        assert [p['name'] for p in resp.get_json()['products']] == ['Mango 50% Off']

        resp = client.post('/api/search-product', headers=buyer.headers, json={'searchTerm': 'T_mato'})
        assert resp.status_code == 404

    def test_non_text_term(self, client, buyer, product):
        resp = client.post('/api/search-product', headers=buyer.headers, json={'searchTerm': 7})
        assert resp.status_code == 400


class TestProductNumbers:

    @pytest.mark.parametrize('field', ['price', 'quantityValue'])
    @pytest.mark.parametrize('value', ['nan', 'inf'])
    def test_non_finite_numbers_rejected(self, client, farmer, field, value):
        form = TestAddProduct().form(**{field: value})
        resp = client.post('/api/products', headers=farmer.headers, data=form,
                           content_type='multipart/form-data')
        assert resp.status_code == 400
        assert resp.get_json()['message'] == f'{field} must be a number'


class TestDeleteAfterCheckout:

    def test_orders_and_reviews_survive_product_removal(self, app, client, buyer, farmer, product, checkout):
        tracking_number = checkout(buyer, [(product, 2)])['trackingNumber']

        assert client.delete(f'/api/products/{product}', headers=farmer.headers).status_code == 200

        with app.app_context():
            item = OrderItem.query.one()
            assert item.product_id is None
            assert item.product_name == 'Fresh Tomato'
            assert Review.query.filter_by(product_id=product).count() == 0

        order = client.get(f'/api/OrderTrack/track/{tracking_number}', headers=buyer.headers).get_json()['order']
        assert order['items'][0]['productName'] == 'Fresh Tomato'
        assert order['items'][0]['orderedQuantity'] == 2

        pending = client.get('/api/rating-review/pending', headers=buyer.headers).get_json()
        assert pending['reviews'] == []
