from __future__ import annotations

from sqlalchemy import inspect, text

import oppflow.database.db as db_module
from oppflow.api.v1 import health


def test_session_layer_against_in_memory_database():
    previous_url = db_module.get_active_database_url()
    db_module.reset_engine("sqlite://")
    try:
        db_module.init_db()
        assert "opportunity_tasks" in inspect(db_module.get_engine()).get_table_names()

        with db_module.get_db_session() as session:
            assert session.execute(text("SELECT 1")).scalar() == 1

        assert db_module.verify_database_connection() is True
        assert health.health()["database"] == "ok"
    finally:
        db_module.reset_engine(previous_url)
