#!/usr/bin/env python3
"""Apply the document store migrations.

Usage:
    run_migrations.py            # upgrade to head
    run_migrations.py <revision> # upgrade (or downgrade) to a revision
"""

import sys
from pathlib import Path

import logfire
from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory

from sharing.config import Settings
from sharing.util.logging import setup_logging
from sharing.util.observability import configure_logfire

ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"


def _is_downgrade(alembic_cfg: Config, target: str) -> bool:
    """Whether ``target`` is an ancestor of the current head."""
    if target == "head":
        return False
    script = ScriptDirectory.from_config(alembic_cfg)
    head = script.get_current_head()
    ancestors = {rev.revision for rev in script.iterate_revisions(head, "base")}
    return target == "base" or (target in ancestors and target != head)


def main(argv: list[str]) -> int:
    settings = Settings()
    configure_logfire(settings)
    setup_logging(settings)

    target = argv[1] if len(argv) > 1 else "head"
    alembic_cfg = Config(str(ALEMBIC_INI))
    alembic_cfg.set_main_option("script_location", str(ALEMBIC_INI.parent / "migrations"))

    with logfire.span("run_migrations", target=target):
        try:
            if _is_downgrade(alembic_cfg, target):
                logfire.warn("Downgrading document store", target=target)
                command.downgrade(alembic_cfg, target)
            else:
                command.upgrade(alembic_cfg, target)
        except Exception as e:
            logfire.error(
                "Migration failed",
                target=target,
                error=str(e),
                error_type=type(e).__name__,
                _exc_info=sys.exc_info(),
            )
            # Fail the deploy rather than serve against a half-migrated schema
            raise

    logfire.info("Migrations applied", target=target)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
