"""Checkout and delivery tracking."""
import logging
import uuid
from datetime import datetime

from agrilinker import db
from agrilinker.errors import ConflictError, NotFoundError, PermissionDenied, ValidationError
from agrilinker.models import (CartItem, Order, OrderItem, OrderStatusHistory, Product,
                               Review, ORDER_STATUSES)
from agrilinker.services.payment import PAYMENT_METHODS

logger = logging.getLogger(__name__)


class OrderService:

    # =========================
    # ID GENERATORS
    # =========================
    @staticmethod
    def generate_tracking_number():
        # TRK-YYYYMMDD-XXXXXXXX
        date_part = datetime.utcnow().strftime('%Y%m%d')
        return f'TRK-{date_part}-{uuid.uuid4().hex[:8].upper()}'

    @staticmethod
    def _unique_tracking_number():
        while True:
            tracking_number = OrderService.generate_tracking_number()
            if not Order.query.filter_by(tracking_number=tracking_number).first():
                return tracking_number

    # =========================
    # CART
    # =========================
    @staticmethod
    def cart_for(email):
        return CartItem.query.filter_by(user_email=email).order_by(CartItem.created_at).all()

    @staticmethod
    def cart_totals(items):
        return {
            'totalAmount': sum(item.subtotal for item in items),
            'totalQuantity': sum(item.ordered_quantity for item in items),
        }

    @staticmethod
    def add_to_cart(email, product_id, quantity):
        """Put a product in the cart, merging with an existing line for it."""
        product = db.session.get(Product, product_id)
        if product is None:
            raise NotFoundError('Product not found')

        item = CartItem.query.filter_by(user_email=email, product_id=product.id).first()
        requested = quantity + (item.ordered_quantity if item else 0)
        if product.status != 'available':
            raise ConflictError(f'{product.name} is {product.status}')
        if requested > product.quantity_value:
            raise ValidationError(
                f'Only {product.quantity_value:g} {product.quantity_unit} of {product.name} available'
            )

        if item:
            item.ordered_quantity = requested
        else:
            item = CartItem(
                product_id=product.id,
                user_email=email,
                ordered_quantity=quantity,
                product_name=product.name,
                category=product.category,
                price=product.price,
                unit=product.quantity_unit,
                image=product.image,
            )
            db.session.add(item)
        db.session.commit()
        return item

    @staticmethod
    def remove_from_cart(email, item_id):
        item = db.session.get(CartItem, item_id)
        if item is None:
            raise NotFoundError('Cart item not found')
        if item.user_email != email:
            raise PermissionDenied('Forbidden access')
        db.session.delete(item)
        db.session.commit()

    # =========================
    # CHECKOUT
    # =========================
    @staticmethod
    def place_order(email, payment_method, payment_status='completed'):
        """Turn the buyer's cart into an order in one transaction.

        Stock is taken from every product, a tracking number is issued, the
        cart is emptied and a pending review is opened per product bought.
        """
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError('Payment method must be card or bkash')
        if payment_status != 'completed':
            raise ValidationError('Payment has not been completed')

        cart = OrderService.cart_for(email)
        if not cart:
            raise ValidationError('Your cart is empty!')

        order = Order(
            tracking_number=OrderService._unique_tracking_number(),
            user_email=email,
            total_amount=0,
            payment_method=payment_method,
            payment_status=payment_status,
            delivery_status=ORDER_STATUSES[0],
        )

        total = 0
        for item in cart:
            product = item.product
            if product is None or not product.is_purchasable(item.ordered_quantity):
                db.session.rollback()
                raise ConflictError(f'{item.product_name} is no longer available in that quantity')

            product.quantity_value -= item.ordered_quantity
            product.refresh_status()

            order.items.append(OrderItem(
                product_id=product.id,
                product_name=item.product_name,
                category=item.category,
                farmer_email=product.farmer_email,
                ordered_quantity=item.ordered_quantity,
                price=item.price,
                unit=item.unit,
                image=item.image,
            ))
            total += item.subtotal

            if not Review.query.filter_by(product_id=product.id, user_email=email).first():
                db.session.add(Review(product_id=product.id, user_email=email,
                                      tracking_number=order.tracking_number))
            db.session.delete(item)

        order.total_amount = total
        order.history.append(OrderStatusHistory(status=order.delivery_status))
        db.session.add(order)
        db.session.commit()

        logger.info('Order %s placed by %s for %.2f', order.tracking_number, email, total)
        return order

    # =========================
    # TRACKING
    # =========================
    @staticmethod
    def get_by_tracking_number(tracking_number):
        order = Order.query.filter_by(tracking_number=(tracking_number or '').strip()).first()
        if order is None:
            raise NotFoundError('Order not found')
        return order

    @staticmethod
    def orders_for(email):
        return Order.query.filter_by(user_email=email).order_by(Order.created_at.desc()).all()

    @staticmethod
    def advance_status(order_id, new_status):
        """Move an order forward along the delivery steps; never backwards."""
        order = db.session.get(Order, order_id)
        if order is None:
            raise NotFoundError('Order not found')
        if new_status not in ORDER_STATUSES:
            raise ValidationError(f'Unknown order status: {new_status}')

        if ORDER_STATUSES.index(new_status) <= order.status_index:
            raise ConflictError(f'Order is already {order.delivery_status}')

        order.delivery_status = new_status
        order.history.append(OrderStatusHistory(status=new_status))
        if new_status == 'Delivered':
            order.delivered = True
            order.delivered_at = datetime.utcnow()
        db.session.commit()

        logger.info('Order %s advanced to %s', order.tracking_number, new_status)
        return order

    @staticmethod
    def mark_delivered(order_id):
        return OrderService.advance_status(order_id, 'Delivered')

    # =========================
    # ADMIN OVERVIEW
    # =========================
    @staticmethod
    def admin_overview():
        orders = Order.query.order_by(Order.created_at.desc()).all()
        delivered = [order for order in orders if order.delivered]
        return {
            'success': True,
            'orders': [order.to_dict() for order in orders],
            'totalOrders': len(orders),
            'deliveredOrders': len(delivered),
            'pendingOrders': len(orders) - len(delivered),
            'totalRevenue': sum(order.total_amount for order in orders),
        }
