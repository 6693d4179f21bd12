"""
Result persistence: one row per e-mail in `assessment_results`.

The client owns its SQLAlchemy engine. Build it from a DatabaseConfig, call
open() before use and close() when done (or use it as a context manager).
"""
import logging
import struct
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.sql import text

from .content import MAX_SCORE
from .models import AssessmentResult, Base
from .scoring import ScoreBundle
from .settings import ConfigurationError, DatabaseAuthMode, Settings

log = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./assessment.db"
SQL_TOKEN_SCOPE = "https://database.windows.net/.default"
SQL_COPT_SS_ACCESS_TOKEN = 1256  # msodbcsql connection attribute


class SubmissionError(ValueError):
    """A result submission failed validation; the caller must fix it before resubmitting."""

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or []


class PersistenceError(Exception):
    """The database could not be reached or rejected the write."""


class ResultSubmission(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, strict=True)

    email: str
    overall_score: float = Field(alias="overallScore", ge=0, le=MAX_SCORE, allow_inf_nan=False)
    overall_stage: int = Field(alias="overallStage", ge=0, le=6)
    capture_score: float = Field(alias="captureScore", ge=0, le=MAX_SCORE, allow_inf_nan=False)
    capture_stage: int = Field(alias="captureStage", ge=0, le=6)
    storage_score: float = Field(alias="storageScore", ge=0, le=MAX_SCORE, allow_inf_nan=False)
    storage_stage: int = Field(alias="storageStage", ge=0, le=6)
    analytics_score: float = Field(alias="analyticsScore", ge=0, le=MAX_SCORE, allow_inf_nan=False)
    analytics_stage: int = Field(alias="analyticsStage", ge=0, le=6)
    governance_score: float = Field(alias="governanceScore", ge=0, le=MAX_SCORE, allow_inf_nan=False)
    governance_stage: int = Field(alias="governanceStage", ge=0, le=6)

    @field_validator("email")
    @classmethod
    def _email_not_blank(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("email is required")
        return v


def validate_submission(payload: Any) -> ResultSubmission:
    if not isinstance(payload, dict):
        raise SubmissionError("Request body must be a JSON object")
    try:
        return ResultSubmission.model_validate(payload)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise SubmissionError(
            "Missing or invalid fields: " + ", ".join(fields),
            errors=[{"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]} for err in e.errors()],
        ) from e


def build_submission(email: str, bundle: ScoreBundle) -> ResultSubmission:
    """Flatten a ScoreBundle into the submission shape, one score/stage pair per section."""
    payload: Dict[str, Any] = {
        "email": email,
        "overallScore": bundle.overall_score,
        "overallStage": bundle.overall_stage,
    }
    for s in bundle.section_scores:
        payload[f"{s.section_id.value}Score"] = s.normalized
        payload[f"{s.section_id.value}Stage"] = s.stage
    return validate_submission(payload)


@dataclass(frozen=True)
class DatabaseConfig:
    mode: DatabaseAuthMode
    url: Optional[str] = None
    server: Optional[str] = None
    database: Optional[str] = None
    odbc_driver: str = "ODBC Driver 18 for SQL Server"

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatabaseConfig":
        if settings.db_auth_mode is DatabaseAuthMode.CONNECTION_STRING:
            return cls(mode=settings.db_auth_mode, url=settings.sql_conn or DEFAULT_DATABASE_URL)

        missing = [name for name, value in (("SQL_SERVER", settings.sql_server), ("SQL_DATABASE", settings.sql_database)) if not value]
        if missing:
            raise ConfigurationError(
                f"DB_AUTH_MODE={settings.db_auth_mode.value} requires {', '.join(missing)}"
            )
        return cls(
            mode=settings.db_auth_mode,
            server=settings.sql_server,
            database=settings.sql_database,
            odbc_driver=settings.sql_odbc_driver,
        )

    def describe(self) -> Dict[str, Any]:
        """Non-secret summary of where results go."""
        return {
            "authMode": self.mode.value,
            "sqlServer": self.server,
            "sqlDb": self.database,
            "hasConnStr": self.url is not None,
        }


def _connection_string_engine(config: DatabaseConfig) -> Engine:
    url = config.url or DEFAULT_DATABASE_URL
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args, future=True)


def _azure_ad_engine(config: DatabaseConfig) -> Engine:
    # optional dependency group "azure"
    from azure.identity import ChainedTokenCredential, DefaultAzureCredential, ManagedIdentityCredential

    odbc = (
        f"Driver={{{config.odbc_driver}}};Server=tcp:{config.server},1433;"
        f"Database={config.database};Encrypt=yes;TrustServerCertificate=no"
    )
    engine = create_engine(
        URL.create("mssql+pyodbc", query={"odbc_connect": odbc}),
        pool_pre_ping=True,
        future=True,
    )
    credential = ChainedTokenCredential(ManagedIdentityCredential(), DefaultAzureCredential())

    @event.listens_for(engine, "do_connect")
    def _provide_token(dialect, conn_rec, cargs, cparams):
        token = credential.get_token(SQL_TOKEN_SCOPE).token.encode("utf-16-le")
        cparams["attrs_before"] = {SQL_COPT_SS_ACCESS_TOKEN: struct.pack(f"<I{len(token)}s", len(token), token)}

    return engine


class PersistenceClient:
    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._engine: Optional[Engine] = None
        self._sessions: Optional[sessionmaker] = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> "PersistenceClient":
        if self._engine is not None:
            return self
        try:
            if self.config.mode is DatabaseAuthMode.AZURE_AD:
                engine = _azure_ad_engine(self.config)
            else:
                engine = _connection_string_engine(self.config)
        except (SQLAlchemyError, ImportError) as e:
            log.error("Could not create database engine (%s): %s", self.config.mode.value, e)
            raise PersistenceError(f"Could not create database engine: {e}") from e
        try:
            Base.metadata.create_all(bind=engine)
        except SQLAlchemyError as e:
            engine.dispose()
            raise PersistenceError(f"Could not prepare result table: {e}") from e
        self._engine = engine
        self._sessions = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)
        log.info("Persistence opened (%s)", self.config.mode.value)
        return self

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            log.info("Persistence closed")
        self._engine = None
        self._sessions = None

    def __enter__(self) -> "PersistenceClient":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _session(self):
        if self._sessions is None:
            raise PersistenceError("Persistence client is not open")
        return self._sessions()

    def ping(self) -> bool:
        if self._engine is None:
            raise PersistenceError("Persistence client is not open")
        try:
            with self._engine.connect() as conn:
                return conn.execute(text("SELECT 1")).scalar() == 1
        except SQLAlchemyError as e:
            raise PersistenceError(str(e)) from e

    def upsert_result(self, submission: ResultSubmission) -> int:
        """Insert or overwrite the row for submission.email. Returns rows affected."""
        row = AssessmentResult(**submission.model_dump(by_alias=False))
        db = self._session()
        try:
            db.merge(row)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            log.exception("Upsert failed for %s", submission.email)
            raise PersistenceError(f"Could not save result: {e}") from e
        finally:
            db.close()
        log.info("Saved result for %s (stage %s)", submission.email, submission.overall_stage)
        return 1

    def get_result(self, email: str) -> Optional[AssessmentResult]:
        db = self._session()
        try:
            return db.get(AssessmentResult, email.strip().lower())
        except SQLAlchemyError as e:
            raise PersistenceError(str(e)) from e
        finally:
            db.close()


def submit_result(client: PersistenceClient, email: str, bundle: ScoreBundle) -> int:
    return client.upsert_result(build_submission(email, bundle))

