"""Application configuration for the medication reference core.

Configuration is loaded from environment variables (prefix ``MEDREF_``) or a
local ``.env`` file, so desktop installs and test runs can point the stores at
different files without code changes.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def _sqlite_uri(path: Path) -> str:
    return f"sqlite:///{path.as_posix()}"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MEDREF_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    db_dir: str = "app/db"
    medication_db_filename: str = "med_data.db"
    plan_history_db_filename: str = "plan_history.db"

    database_url: str | None = None
    plan_history_database_url: str | None = None

    sql_echo: bool = False
    seed_csv_path: str | None = None

    @property
    def sqlalchemy_database_uri(self) -> str:
        if self.database_url:
            return self.database_url

        return _sqlite_uri(Path(self.db_dir) / self.medication_db_filename)

    @property
    def plan_history_database_uri(self) -> str:
        if self.plan_history_database_url:
            return self.plan_history_database_url

        return _sqlite_uri(Path(self.db_dir) / self.plan_history_db_filename)


settings = Settings()
