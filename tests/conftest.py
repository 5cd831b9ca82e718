import pytest
from decimal import Decimal

from tienda import create_app
from tienda.database import db_session, get_session, create_tables, drop_tables
from tienda.models import Product, Size, ProductVariant
from tienda.services.cart_service import Cart, MemoryCartStore
from tienda.services.stock_service import recalculate_product_stock


@pytest.fixture(scope='function')
def app():
    """Create application instance with a fresh in-memory database."""
    app = create_app('config.TestConfig')
    with app.app_context():
        create_tables()
        yield app
        db_session.remove()
        drop_tables()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def admin_client(client):
    """Test client whose session carries an admin identity."""
    with client.session_transaction() as sess:
        sess['user_id'] = 'admin-1'
        sess['is_admin'] = True
    return client


@pytest.fixture(scope='function')
def session(app):
    """Database session for testing."""
    session = get_session()
    yield session
    session.rollback()


@pytest.fixture(scope='function')
def make_product(session):
    """Factory: create a product with the given price and stock."""
    def _make(name, price, stock=0, active=True):
        product = Product(name=name, price=Decimal(str(price)), stock=stock, active=active)
        session.add(product)
        session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def product_a(make_product):
    return make_product('Taza sublimada', '100.00', stock=10)


@pytest.fixture(scope='function')
def product_b(session, make_product):
    """Product with sizes: M has a price override, S uses the product price."""
    product = make_product('Remera sublimada', '50.00')
    size_s = Size(code='S', name='Small', sort_order=1)
    size_m = Size(code='M', name='Medium', sort_order=2)
    session.add_all([size_s, size_m])
    session.flush()
    session.add_all([
        ProductVariant(product=product, size=size_s, stock=3),
        ProductVariant(product=product, size=size_m, stock=5, price=Decimal('60.00')),
    ])
    session.flush()
    recalculate_product_stock(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def variant_m(session, product_b):
    return next(v for v in product_b.variants if v.code == 'M')


@pytest.fixture(scope='function')
def product_c(make_product):
    return make_product('Gorra', '80.00', stock=3)


@pytest.fixture(scope='function')
def cart():
    """Cart backed by an in-memory store."""
    return Cart(MemoryCartStore())


@pytest.fixture(scope='function')
def valid_client():
    return {'nombre': 'Ana Pérez', 'telefono': '+54 9 11 5555-1234', 'email': 'ana@example.com'}
