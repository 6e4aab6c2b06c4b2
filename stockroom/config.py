"""TOML configuration loader."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]

DEFAULT_DEPARTMENTS = [
    "Frontdesk一楼",
    "2ND FLOOR 二楼",
    "3RD FLOOR 男宾 NAN BIN",
    "3RD FLOOR 女宾 NU BIN",
    "5TH FLOOR 五楼",
    "6TH FLOOR 六楼",
    "7TH FLOOR 七楼",
    "kitchen 厨房",
    "therapist技师",
    "财务finance",
    "HR人事",
    "back scrubber后勤",
]


@dataclass
class DatabaseConfig:
    path: str = "~/.config/stockroom/inventory.db"


@dataclass
class DepartmentsConfig:
    defaults: list[str] = field(default_factory=lambda: list(DEFAULT_DEPARTMENTS))


@dataclass
class ReportsConfig:
    top_departments: int = 5
    low_stock_only: bool = False
    output_dir: str = "~/stockroom-exports"


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class StockroomConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    departments: DepartmentsConfig = field(default_factory=DepartmentsConfig)
    reports: ReportsConfig = field(default_factory=ReportsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | Path | None = None) -> StockroomConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    The database path can be overridden via STOCKROOM_DB_PATH.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path).expanduser()
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    db = raw.get("database", {})
    dep = raw.get("departments", {})
    rep = raw.get("reports", {})
    log = raw.get("logging", {})

    db_path = os.environ.get("STOCKROOM_DB_PATH", "") or db.get(
        "path", "~/.config/stockroom/inventory.db"
    )

    return StockroomConfig(
        database=DatabaseConfig(path=db_path),
        departments=DepartmentsConfig(
            defaults=list(dep.get("defaults", DEFAULT_DEPARTMENTS)),
        ),
        reports=ReportsConfig(
            top_departments=rep.get("top_departments", 5),
            low_stock_only=rep.get("low_stock_only", False),
            output_dir=rep.get("output_dir", "~/stockroom-exports"),
        ),
        logging=LoggingConfig(
            level=str(log.get("level", "WARNING")).upper(),
        ),
    )
