from __future__ import annotations

import importlib

from dotenv import load_dotenv

from school_portal.config import get_settings_module
from school_portal.database.bootstrap import DEMO_USERS, apply_seed_sql, ensure_demo_users


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_seed_sql(db_config)
    ensure_demo_users(db_config)

    print(
        "OK: Seeded classes, students and demo users -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )
    for user in DEMO_USERS:
        print(f"  {user.role:<8} {user.username} / {user.password}")


if __name__ == "__main__":
    main()
