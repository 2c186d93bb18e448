"""Database models for AgriLinker."""
import uuid
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from agrilinker import db, login_manager

ROLES = ['buyer', 'farmer', 'admin']

PRODUCT_CATEGORIES = ['vegetables', 'fruits', 'grains', 'pulses', 'spices', 'dairy', 'others']
QUANTITY_UNITS = ['kg', 'g', 'litre', 'piece', 'dozen', 'mon']

# Delivery progression shown on the tracking page, in order
ORDER_STEPS = [
    ('Order Placed', 'Your order has been received'),
    ('Processing', 'Preparing your order'),
    ('Shipped', 'Order is on the way'),
    ('Delivered', 'Order delivered successfully'),
]
ORDER_STATUSES = [status for status, _ in ORDER_STEPS]

LOAN_STATUSES = ['pending', 'approved', 'rejected', 'disbursed', 'completed']


def _iso(value):
    return value.isoformat() if value else None


@login_manager.user_loader
def load_user(user_id):
    """Load user by ID for Flask-Login."""
    return db.session.get(User, int(user_id))


class User(UserMixin, db.Model):
    """Marketplace account for buyers, farmers and admins."""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    uid = db.Column(db.String(64), unique=True, nullable=False, default=lambda: uuid.uuid4().hex)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=True)
    role = db.Column(db.String(20), nullable=False, default='buyer')  # buyer, farmer, admin
    photo_url = db.Column(db.String(500))
    nid_number = db.Column(db.String(20))  # 1234-567-8901
    address = db.Column(db.String(300))
    phone = db.Column(db.String(20))
    # unverified (non-farmers), pending, verified, rejected
    verification_status = db.Column(db.String(20), default='unverified')
    rejection_reason = db.Column(db.Text)
    verified_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    loans = db.relationship('LoanRequest', backref='farmer', lazy='dynamic')
    investments = db.relationship('Investment', backref='investor', lazy='dynamic')

    @property
    def is_admin(self):
        return self.role == 'admin'

    @property
    def is_farmer(self):
        return self.role == 'farmer'

    def set_password(self, password):
        """Set hashed password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Check password against hash."""
        if self.password_hash:
            return check_password_hash(self.password_hash, password)
        return False

    def to_dict(self):
        return {
            '_id': self.id,
            'uid': self.uid,
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'photoURL': self.photo_url,
            'nidNumber': self.nid_number or '',
            'address': self.address or '',
            'phone': self.phone or '',
            'verificationStatus': self.verification_status,
            'isVerified': self.verification_status == 'verified',
            'rejectionReason': self.rejection_reason,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }

    def __repr__(self):
        return f'<User {self.email}>'


class Product(db.Model):
    """Farm produce listed by a farmer."""
    __tablename__ = 'products'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(50), nullable=False)
    quantity_value = db.Column(db.Float, nullable=False, default=0)
    quantity_unit = db.Column(db.String(20), nullable=False, default='kg')
    price = db.Column(db.Float, nullable=False)  # per quantity_unit
    farmer_email = db.Column(db.String(120), nullable=False, index=True)
    status = db.Column(db.String(20), default='available')  # available, out-of-stock, sold-out
    image = db.Column(db.String(500))  # path served under /uploads
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def refresh_status(self):
        """Derive availability from stock; sold-out is set explicitly and sticks."""
        if self.status == 'sold-out':
            return
        self.status = 'available' if self.quantity_value > 0 else 'out-of-stock'

    def is_purchasable(self, quantity):
        return self.status == 'available' and 0 < quantity <= self.quantity_value

    def to_dict(self, rating=None):
        data = {
            '_id': self.id,
            'name': self.name,
            'category': self.category,
            'quantity': {'value': self.quantity_value, 'unit': self.quantity_unit},
            'price': self.price,
            'farmerEmail': self.farmer_email,
            'status': self.status,
            'image': self.image,
            'createdAt': _iso(self.created_at),
        }
        if rating is not None:
            data['averageRating'] = rating['averageRating']
            data['reviewCount'] = rating['reviewCount']
        return data

    def __repr__(self):
        return f'<Product {self.name}>'


class CartItem(db.Model):
    """Product placed in a buyer's cart, with price details copied at add time."""
    __tablename__ = 'cart_items'

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False)
    user_email = db.Column(db.String(120), nullable=False, index=True)
    ordered_quantity = db.Column(db.Float, nullable=False)
    product_name = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(50))
    price = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(20))
    image = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    product = db.relationship('Product')

    @property
    def subtotal(self):
        return self.price * self.ordered_quantity

    def to_dict(self):
        return {
            '_id': self.id,
            'productId': self.product_id,
            'productName': self.product_name,
            'category': self.category,
            'orderedQuantity': self.ordered_quantity,
            'price': self.price,
            'unit': self.unit,
            'image': self.image,
            'userEmail': self.user_email,
            'subtotal': self.subtotal,
        }


class Order(db.Model):
    """A paid checkout of a buyer's cart."""
    __tablename__ = 'orders'

    id = db.Column(db.Integer, primary_key=True)
    tracking_number = db.Column(db.String(40), unique=True, nullable=False, index=True)
    user_email = db.Column(db.String(120), nullable=False, index=True)
    total_amount = db.Column(db.Float, nullable=False)
    payment_method = db.Column(db.String(20), nullable=False)  # card, bkash
    payment_status = db.Column(db.String(20), nullable=False, default='completed')
    delivery_status = db.Column(db.String(20), nullable=False, default='Order Placed')
    delivered = db.Column(db.Boolean, default=False)
    delivered_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = db.relationship('OrderItem', backref='order', cascade='all, delete-orphan')
    history = db.relationship('OrderStatusHistory', backref='order',
                              cascade='all, delete-orphan',
                              order_by='OrderStatusHistory.id')

    @property
    def status_index(self):
        return ORDER_STATUSES.index(self.delivery_status)

    def status_steps(self):
        """Fixed tracking steps, completed up to and including the current one."""
        current_index = self.status_index
        return [
            {
                'status': status,
                'label': status,
                'description': description,
                'completed': index <= current_index,
                'current': index == current_index,
            }
            for index, (status, description) in enumerate(ORDER_STEPS)
        ]

    def to_dict(self, with_steps=False):
        data = {
            '_id': self.id,
            'trackingNumber': self.tracking_number,
            'userId': self.user_email,
            'items': [item.to_dict() for item in self.items],
            'totalAmount': self.total_amount,
            'paymentMethod': self.payment_method,
            'paymentStatus': self.payment_status,
            'status': self.delivery_status,
            'delivered': self.delivered,
            'statusHistory': [entry.to_dict() for entry in self.history],
            'orderDate': _iso(self.created_at),
            'deliveredAt': _iso(self.delivered_at),
        }
        if with_steps:
            data['steps'] = self.status_steps()
        return data

    def __repr__(self):
        return f'<Order {self.tracking_number} - {self.delivery_status}>'


class OrderItem(db.Model):
    """Line of an order; product details are frozen at checkout."""
    __tablename__ = 'order_items'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id'), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=True)
    product_name = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(50))
    farmer_email = db.Column(db.String(120))
    ordered_quantity = db.Column(db.Float, nullable=False)
    price = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(20))
    image = db.Column(db.String(500))

    def to_dict(self):
        return {
            'productId': self.product_id,
            'productName': self.product_name,
            'category': self.category,
            'farmerEmail': self.farmer_email,
            'orderedQuantity': self.ordered_quantity,
            'price': self.price,
            'unit': self.unit,
            'image': self.image,
        }


class OrderStatusHistory(db.Model):
    """Append-only record of delivery status changes."""
    __tablename__ = 'order_status_history'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id'), nullable=False)
    status = db.Column(db.String(20), nullable=False)
    date = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {'status': self.status, 'date': _iso(self.date)}


class LoanRequest(db.Model):
    """Farmer loan application, reviewed by admins and funded by investors."""
    __tablename__ = 'loan_requests'

    id = db.Column(db.Integer, primary_key=True)
    farmer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    amount = db.Column(db.Float, nullable=False)
    purpose = db.Column(db.String(300), nullable=False)
    repayment_period = db.Column(db.Integer, nullable=False)  # months
    preferred_start_date = db.Column(db.Date)
    previous_loans = db.Column(db.String(3), default='no')  # yes, no
    collateral = db.Column(db.String(300))
    notes = db.Column(db.Text)
    status = db.Column(db.String(20), default='pending')
    rejection_reason = db.Column(db.Text)
    decided_at = db.Column(db.DateTime)
    disbursed_at = db.Column(db.DateTime)
    completed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    funding = db.relationship('Investment', backref='loan', lazy='dynamic')

    def invested_amount(self):
        """Sum of investments made against this loan."""
        return sum(investment.amount for investment in self.funding)

    def outstanding_amount(self):
        return max(0, self.amount - self.invested_amount())

    def to_dict(self):
        invested = self.invested_amount()
        return {
            '_id': self.id,
            'farmerId': self.farmer.email if self.farmer else None,
            'farmerName': self.farmer.name if self.farmer else None,
            'amount': self.amount,
            'purpose': self.purpose,
            'repaymentPeriod': self.repayment_period,
            'preferredStartDate': _iso(self.preferred_start_date),
            'previousLoans': self.previous_loans,
            'collateral': self.collateral or '',
            'notes': self.notes or '',
            'status': self.status,
            'rejectionReason': self.rejection_reason,
            'investedAmount': invested,
            'outstandingAmount': max(0, self.amount - invested),
            'createdAt': _iso(self.created_at),
            'decidedAt': _iso(self.decided_at),
            'disbursedAt': _iso(self.disbursed_at),
            'completedAt': _iso(self.completed_at),
        }

    def __repr__(self):
        return f'<LoanRequest {self.id} - {self.status}>'


class Investment(db.Model):
    """Money pledged by an investor towards a farmer loan."""
    __tablename__ = 'investments'

    id = db.Column(db.Integer, primary_key=True)
    loan_id = db.Column(db.Integer, db.ForeignKey('loan_requests.id'), nullable=False)
    investor_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    amount = db.Column(db.Float, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            '_id': self.id,
            'loanId': self.loan_id,
            'loanPurpose': self.loan.purpose if self.loan else None,
            'investorId': self.investor.email if self.investor else None,
            'amount': self.amount,
            'createdAt': _iso(self.created_at),
        }


class Review(db.Model):
    """Buyer rating of a product; opened as pending when the order is placed."""
    __tablename__ = 'reviews'
    __table_args__ = (
        db.UniqueConstraint('product_id', 'user_email', name='uq_review_product_user'),
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False)
    user_email = db.Column(db.String(120), nullable=False, index=True)
    tracking_number = db.Column(db.String(40))
    rating = db.Column(db.Integer)  # 1-5, set once complete
    review = db.Column(db.Text, default='')
    status = db.Column(db.String(20), default='pending')  # pending, complete, skipped
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    product = db.relationship('Product')

    def to_dict(self):
        return {
            '_id': self.id,
            'productId': self.product_id,
            'productName': self.product.name if self.product else None,
            'userId': self.user_email,
            'trackingNumber': self.tracking_number,
            'rating': self.rating,
            'review': self.review or '',
            'status': self.status,
            'createdAt': _iso(self.created_at),
        }


class SearchActivity(db.Model):
    """Per-user count of product searches by category."""
    __tablename__ = 'search_activity'
    __table_args__ = (
        db.UniqueConstraint('user_email', 'category', name='uq_search_user_category'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_email = db.Column(db.String(120), nullable=False, index=True)
    category = db.Column(db.String(50), nullable=False)
    count = db.Column(db.Integer, default=0)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
