from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, inspect, text

from photoshare.models import Base


def _make_alembic_config(db_url: str) -> Config:
    repo_root = Path(__file__).resolve().parents[1]
    config = Config(str(repo_root / "alembic.ini"))
    config.set_main_option("sqlalchemy.url", db_url)
    config.attributes["configure_logger"] = False
    return config


def test_alembic_upgrade_and_downgrade(tmp_path) -> None:
    db_url = f"sqlite:///{tmp_path / 'migrations.db'}"
    config = _make_alembic_config(db_url)
    head_revision = ScriptDirectory.from_config(config).get_current_head()
    assert head_revision is not None

    engine = create_engine(db_url)
    try:
        with engine.begin() as connection:
            config.attributes["connection"] = connection
            command.upgrade(config, "head")

            inspector = inspect(connection)
            assert connection.execute(text("SELECT version_num FROM alembic_version")).scalar_one() == head_revision
            assert set(Base.metadata.tables) <= set(inspector.get_table_names())
            for table in Base.metadata.tables.values():
                columns = {column["name"] for column in inspector.get_columns(table.name)}
                assert columns == set(table.columns.keys()), table.name

            command.downgrade(config, "base")
            assert set(inspect(connection).get_table_names()) <= {"alembic_version"}
    finally:
        engine.dispose()
