# agrilinker/client.py
"""HTTP client for the AgriLinker REST API.

Mirrors what the browser app does around every call: attach the bearer
token, drop it (log out) when the server answers 401 or 403, and surface
the server's `message` as the error text.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = os.getenv('AGRILINKER_API_BASE_URL', 'http://localhost:5000')
DEFAULT_TIMEOUT = int(os.getenv('AGRILINKER_API_TIMEOUT', '20'))

LOGOUT_STATUS = {401, 403}


class ApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _safe_json(resp: requests.Response) -> Optional[Any]:
    """Return the decoded body, or None when the server did not send JSON."""
    try:
        return resp.json()
    except ValueError:
        return None


class MarketplaceClient:

    def __init__(self, base_url: str = DEFAULT_BASE_URL, session: Optional[requests.Session] = None,
                 timeout: int = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout
        self.token: Optional[str] = None
        self.email: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    # =========================
    # TRANSPORT
    # =========================
    def request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop('headers', {})
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        url = f'{self.base_url}{path}'

        try:
            resp = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except (requests.Timeout, requests.ConnectionError) as e:
            raise ApiError(f'Network error on {url}: {e}')

        data = _safe_json(resp)

        if resp.status_code in LOGOUT_STATUS:
            logger.info('Server answered %s on %s; logging out', resp.status_code, path)
            self.logout()

        if resp.status_code >= 400:
            message = None
            if isinstance(data, dict):
                message = data.get('message') or data.get('error')
            raise ApiError(message or f'Request failed (HTTP {resp.status_code})', resp.status_code)

        if data is None:
            snippet = (resp.text or '').strip().replace('\n', ' ')[:240]
            raise ApiError(f'Server returned non-JSON response ({resp.status_code}): {snippet}',
                           resp.status_code)
        return data

    def get(self, path: str, **kwargs) -> Any:
        return self.request('GET', path, **kwargs)

    def post(self, path: str, payload: Optional[dict] = None, **kwargs) -> Any:
        return self.request('POST', path, json=payload, **kwargs)

    def patch(self, path: str, payload: Optional[dict] = None, **kwargs) -> Any:
        return self.request('PATCH', path, json=payload, **kwargs)

    def delete(self, path: str, **kwargs) -> Any:
        return self.request('DELETE', path, **kwargs)

    # =========================
    # AUTH
    # =========================
    def register(self, name: str, email: str, password: str, role: str = 'buyer') -> Dict[str, Any]:
        return self.post('/users', {'name': name, 'email': email, 'password': password,
                                    'confirm_password': password, 'role': role})

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Fetch a token, then the user record it belongs to."""
        data = self.post('/jwt', {'email': email, 'password': password})
        self.token = data['token']
        self.email = email.strip().lower()
        return self.get(f'/users/{self.email}')

    def logout(self) -> None:
        self.token = None
        self.email = None

    # =========================
    # MARKETPLACE
    # =========================
    def products(self):
        if self.email:
            return self.get(f'/api/products/recommended/{self.email}')
        return self.get('/api/products')

    def search(self, term: str) -> Dict[str, Any]:
        return self.post('/api/search-product', {'searchTerm': term.strip()})

    def add_to_cart(self, product_id: int, quantity: float) -> Dict[str, Any]:
        return self.post('/api/cart/add', {'productId': product_id, 'quantity': quantity})

    def cart(self) -> Dict[str, Any]:
        return self.get(f'/api/cart/user/{self.email}')

    def remove_from_cart(self, item_id: int) -> Dict[str, Any]:
        return self.delete(f'/api/cart/remove/{item_id}')

    def pay_by_card(self, card_number: str, expiry_date: str, cvv: str, cardholder_name: str):
        return self.post('/api/orders/create', {
            'paymentMethod': 'card',
            'cardNumber': card_number,
            'expiryDate': expiry_date,
            'cvv': cvv,
            'cardholderName': cardholder_name,
        })

    def pay_by_bkash(self, phone: str, pin: str):
        return self.post('/api/orders/create', {
            'paymentMethod': 'bkash',
            'bkashNumber': phone,
            'bkashPin': pin,
        })

    def track(self, tracking_number: str) -> Dict[str, Any]:
        tracking_number = tracking_number.strip()
        if not tracking_number:
            raise ApiError('Please enter a tracking number')
        return self.get(f'/api/OrderTrack/track/{tracking_number}')['order']

    def submit_review(self, product_id: int, rating: int, review: str = '') -> Dict[str, Any]:
        return self.post('/api/rating-review/submit',
                         {'productId': product_id, 'rating': rating, 'review': review})

    def request_loan(self, **fields) -> Dict[str, Any]:
        return self.post('/api/loans', fields)

    def loans(self):
        return self.get('/api/loans/all')

    def invest(self, loan_id: int, amount: float) -> Dict[str, Any]:
        return self.post('/api/investments', {'loanId': loan_id, 'amount': amount})
