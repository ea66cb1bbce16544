import enum
from datetime import timezone

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    JSON,
    Enum,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func  # For default timestamps
from sqlalchemy.types import TypeDecorator
from .database import Base


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes, also on backends (SQLite) that drop the offset."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class SurveyStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    PAUSED = "paused"
    CLOSED = "closed"


class Sentiment(str, enum.Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class User(Base):
    """Read-only view of the identity provider's users."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    api_token = Column(String(255), unique=True, index=True, nullable=True)
    created_at = Column(UTCDateTime(), server_default=func.now())

    surveys = relationship("Survey", back_populates="creator")


class Survey(Base):
    __tablename__ = "surveys"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=False, default="general")
    estimated_time = Column(String(50), nullable=False, default="5-10 minutes")
    questions = Column(JSON, nullable=True)  # ordered list of question dicts
    settings = Column(JSON, nullable=True)
    status = Column(
        Enum(SurveyStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=SurveyStatus.DRAFT,
        index=True,
    )
    created_by = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    published_at = Column(UTCDateTime(), nullable=True)
    analytics = Column(JSON, nullable=True)  # seed shape only, never authoritative
    created_at = Column(UTCDateTime(), server_default=func.now(), index=True)
    updated_at = Column(
        UTCDateTime(), onupdate=func.now(), server_default=func.now()
    )
    deleted_at = Column(UTCDateTime(), nullable=True)  # tombstone

    creator = relationship(
        "User", back_populates="surveys", lazy="joined", innerjoin=True
    )

    __table_args__ = (Index("ix_surveys_created_by_status", "created_by", "status"),)

    @property
    def question_count(self) -> int:
        return len(self.questions) if isinstance(self.questions, list) else 0


class Response(Base):
    __tablename__ = "responses"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    survey_id = Column(
        Integer, ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(String(255), nullable=True, index=True)  # CDP user or anonymous
    session_id = Column(String(255), nullable=True)
    responses = Column(JSON, nullable=False)  # question identifier -> answer
    nps_score = Column(Integer, nullable=True, index=True)
    sentiment = Column(
        Enum(Sentiment, values_callable=lambda e: [m.value for m in e]),
        nullable=True,
        index=True,
    )
    completion_time = Column(Integer, nullable=True)  # seconds
    user_agent = Column(Text, nullable=True)
    ip_address = Column(String(45), nullable=True)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=True)
    created_at = Column(UTCDateTime(), server_default=func.now(), index=True)
    updated_at = Column(
        UTCDateTime(), onupdate=func.now(), server_default=func.now()
    )

    survey = relationship("Survey")

    __table_args__ = (Index("ix_responses_survey_created", "survey_id", "created_at"),)
