import subprocess
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine, inspect

ROOT = Path(__file__).resolve().parents[1]


def _upgrade(url: str) -> None:
    subprocess.run(
        [
            sys.executable,
            "-m",
            "alembic",
            "-c",
            str(ROOT / "alembic.ini"),
            "-x",
            f"db_url={url}",
            "upgrade",
            "head",
        ],
        check=True,
        cwd=ROOT,
    )


@pytest.mark.parametrize("driver", ["sqlite+aiosqlite", "sqlite"])
def test_migrations_create_order_tables(tmp_path, driver):
    db = tmp_path / "orders.db"
    _upgrade(f"{driver}:///{db}")

    engine = create_engine(f"sqlite:///{db}")
    try:
        tables = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    assert {"menu_items", "orders", "order_items"} <= tables
