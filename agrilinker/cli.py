"""Flask CLI commands: `flask create-admin` and `flask seed-products`."""
import click

from agrilinker import db
from agrilinker.errors import ValidationError
from agrilinker.models import Product, User
from agrilinker.validators import normalize_email, validate_password

SAMPLE_PRODUCTS = [
    ('Fresh Tomato', 'vegetables', 120, 'kg', 40),
    ('Potato (Diamond)', 'vegetables', 500, 'kg', 22),
    ('Miniket Rice', 'grains', 800, 'kg', 68),
    ('Red Lentil', 'pulses', 200, 'kg', 110),
    ('Himsagar Mango', 'fruits', 300, 'kg', 90),
    ('Turmeric Powder', 'spices', 50, 'kg', 320),
    ('Cow Milk', 'dairy', 100, 'litre', 80),
]


def register_commands(app):

    @app.cli.command('create-admin')
    @click.option('--name', default='Administrator')
    @click.option('--email', prompt=True)
    @click.password_option()
    def create_admin(name, email, password):
        """Create an admin account, or promote an existing user."""
        email = normalize_email(email)
        try:
            validate_password(password)
        except ValidationError as e:
            raise click.BadParameter(e.message, param_hint='password')
        user = User.query.filter_by(email=email).first()
        if user:
            user.role = 'admin'
            click.echo(f'Promoted {email} to admin')
        else:
            user = User(name=name, email=email, role='admin')
            db.session.add(user)
            click.echo(f'Created admin {email}')
        user.set_password(password)
        db.session.commit()

    @app.cli.command('seed-products')
    @click.option('--farmer-email', required=True, help='Owner of the sample listings')
    def seed_products(farmer_email):
        """Load a handful of sample product listings."""
        farmer_email = normalize_email(farmer_email)
        created = 0
        for name, category, quantity, unit, price in SAMPLE_PRODUCTS:
            if Product.query.filter_by(name=name, farmer_email=farmer_email).first():
                continue
            product = Product(name=name, category=category, quantity_value=quantity,
                              quantity_unit=unit, price=price, farmer_email=farmer_email)
            product.refresh_status()
            db.session.add(product)
            created += 1
        db.session.commit()
        click.echo(f'Seeded {created} products for {farmer_email}')
