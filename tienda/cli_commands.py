"""
Flask CLI commands.

Commands:
- flask init-db: Create database tables
- flask seed-demo: Insert a small demo catalogue
"""
import click
from decimal import Decimal

from tienda.database import db_session, create_tables
from tienda.models import Product, Size, ProductVariant
from tienda.services.stock_service import recalculate_product_stock


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables (existing tables are left untouched)."""
        create_tables()
        click.echo(click.style('✅ Tablas creadas', fg='green'))

    @app.cli.command('seed-demo')
    def seed_demo():
        """Insert demo products, sizes and variants."""
        if db_session.query(Product).first():
            click.echo(click.style('❌ La base ya tiene productos, no se cargó la demo.', fg='red'))
            return

        try:
            sizes = [
                Size(code='S', name='Small', sort_order=1),
                Size(code='M', name='Medium', sort_order=2),
                Size(code='L', name='Large', sort_order=3),
            ]
            db_session.add_all(sizes)

            taza = Product(name='Taza sublimada', price=Decimal('4500.00'), stock=20, sku='TAZA-001', category='Tazas')
            remera = Product(name='Remera sublimada', price=Decimal('9000.00'), sku='REM-001', category='Remeras')
            db_session.add_all([taza, remera])
            db_session.flush()

            for size, stock in zip(sizes, (5, 8, 3)):
                db_session.add(ProductVariant(
                    product=remera,
                    size=size,
                    stock=stock,
                    price=Decimal('9500.00') if size.code == 'L' else None
                ))
            db_session.flush()
            recalculate_product_stock(remera)
            db_session.commit()

            click.echo(click.style('✅ Catálogo demo cargado', fg='green', bold=True))
            click.echo(f'   {taza.name}: stock {taza.stock}')
            click.echo(f'   {remera.name}: stock {remera.stock} (por talles)')

        except Exception as e:
            db_session.rollback()
            click.echo(click.style(f'❌ Error al cargar la demo: {str(e)}', fg='red'))
