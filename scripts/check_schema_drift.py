from __future__ import annotations

import sys

from alembic.autogenerate import api as ag_api
from alembic.runtime.migration import MigrationContext

from competitii.config import load_settings
from competitii.db.engine import make_engine
from competitii.models import Base


def _print_ops(ops, indent: int = 0) -> None:
    prefix = "  " * indent
    for op in ops:
        print(f"{prefix}- {op}")
        sub_ops = getattr(op, "ops", None)
        if sub_ops:
            _print_ops(sub_ops, indent + 1)


def main() -> int:
    """Compare the ORM models with the live schema.

    Exit codes: 0 in sync, 1 drift found, 2 the check itself failed.
    """
    engine = make_engine(load_settings().db_url)
    url_display = engine.url.render_as_string(hide_password=True)
    try:
        with engine.connect() as connection:
            context = MigrationContext.configure(
                connection=connection,
                opts={
                    "compare_type": True,
                    "render_as_batch": connection.dialect.name == "sqlite",
                },
            )
            migration = ag_api.produce_migrations(context, Base.metadata)
            upgrade_ops = migration.upgrade_ops
            if upgrade_ops is None:
                print(f"Schema drift check: ERROR for {url_display}: missing upgrade ops.")
                return 2
            if upgrade_ops.is_empty():
                print(f"Schema drift check: OK for {url_display}.")
                return 0
            print(f"Schema drift check: FAILED for {url_display}:")
            _print_ops(upgrade_ops.ops or [])
            return 1
    except Exception as exc:
        print(f"Schema drift check: ERROR for {url_display}: {exc}", file=sys.stderr)
        return 2
    finally:
        engine.dispose()


if __name__ == "__main__":
    raise SystemExit(main())
