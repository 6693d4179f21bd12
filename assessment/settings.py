from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ROOT_DIR = Path(__file__).resolve().parents[1]


class ConfigurationError(Exception):
    """Environment configuration is missing a value the selected mode requires."""


class DatabaseAuthMode(str, Enum):
    # any SQLAlchemy URL taken verbatim from SQL_CONN
    CONNECTION_STRING = "connection_string"
    # SQL Server with an Azure AD access token (managed identity, then developer login)
    AZURE_AD = "azure_ad"


class Settings(BaseSettings):
    db_auth_mode: DatabaseAuthMode = Field(
        default=DatabaseAuthMode.CONNECTION_STRING, validation_alias="DB_AUTH_MODE"
    )
    sql_conn: Optional[str] = Field(default=None, validation_alias="SQL_CONN")
    sql_server: Optional[str] = Field(default=None, validation_alias="SQL_SERVER")
    sql_database: Optional[str] = Field(default=None, validation_alias="SQL_DATABASE")
    sql_odbc_driver: str = Field(default="ODBC Driver 18 for SQL Server", validation_alias="SQL_ODBC_DRIVER")

    report_assets_dir: Path = Field(default=ROOT_DIR / "assets", validation_alias="REPORT_ASSETS_DIR")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def get_settings() -> Settings:
    return Settings()
