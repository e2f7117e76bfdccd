import databases
import sqlalchemy
from formapi.config import config

metadata = sqlalchemy.MetaData()


form_table = sqlalchemy.Table(
    "form",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.String(32), primary_key=True),
    sqlalchemy.Column("owner_id", sqlalchemy.String(128), nullable=False, index=True),
    sqlalchemy.Column("owner_email", sqlalchemy.String(256)),
    sqlalchemy.Column("title", sqlalchemy.String(256), nullable=False),
    sqlalchemy.Column("description", sqlalchemy.Text, default=""),
    sqlalchemy.Column("sections", sqlalchemy.JSON, nullable=False),  # [{id, title, description, questions: [...]}, ...]
    sqlalchemy.Column("is_test_mode", sqlalchemy.Boolean, default=False),
    sqlalchemy.Column("is_published", sqlalchemy.Boolean, default=False),
    sqlalchemy.Column("theme", sqlalchemy.JSON),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime, nullable=False),
    sqlalchemy.Column("updated_at", sqlalchemy.DateTime, nullable=False),
)

response_table = sqlalchemy.Table(
    "response",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.String(32), primary_key=True),
    sqlalchemy.Column("form_id", sqlalchemy.ForeignKey("form.id"), nullable=False, index=True),
    sqlalchemy.Column("answers", sqlalchemy.JSON, nullable=False),  # {question_id: str | [str, ...]}
    sqlalchemy.Column("score", sqlalchemy.Integer, nullable=True),
    sqlalchemy.Column("submitted_at", sqlalchemy.DateTime, nullable=False),
    sqlalchemy.Column("idempotency_key", sqlalchemy.String(64), unique=True, nullable=True),
)


connect_args = {"check_same_thread": False} if config.DATABASE_URL.startswith("sqlite") else {}
engine = sqlalchemy.create_engine(config.DATABASE_URL, connect_args=connect_args)

metadata.create_all(engine)
database = databases.Database(
    config.DATABASE_URL, force_rollback=config.DB_FORCE_ROLL_BACK
)
