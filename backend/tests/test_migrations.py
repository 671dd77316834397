from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

ROOT = Path(__file__).resolve().parents[2]


def _alembic_config(url: str) -> Config:
    config = Config()
    config.set_main_option("script_location", str(ROOT / "backend" / "migrations"))
    config.set_main_option("sqlalchemy.url", url)
    return config


def test_migrations_upgrade_and_downgrade(tmp_path: Path) -> None:
    url = f"sqlite:///{tmp_path / 'portal.db'}"
    config = _alembic_config(url)

    command.upgrade(config, "head")

    engine = create_engine(url)
    try:
        inspector = inspect(engine)
        assert {"users", "customers", "products", "customer_products"} <= set(inspector.get_table_names())

        product_columns = {column["name"] for column in inspector.get_columns("products")}
        assert {"sku", "price", "stock"} <= product_columns

        pk = inspector.get_pk_constraint("customer_products")
        assert sorted(pk["constrained_columns"]) == ["customer_id", "product_id"]
    finally:
        engine.dispose()

    command.downgrade(config, "base")

    engine = create_engine(url)
    try:
        assert set(inspect(engine).get_table_names()) == {"alembic_version"}
    finally:
        engine.dispose()
