from enum import Enum
from sqlalchemy import Column, String, DateTime, Text, Integer, JSON
from datetime import datetime

from auth.models import Base, engine


class PredictionStatus(str, Enum):
    STARTING = "starting"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


class JobKind(str, Enum):
    SYNTHESIS_SINGLE = "synthesis_single"
    SYNTHESIS_DUAL = "synthesis_dual"
    # Choreography is synchronous only; reserved for when it goes async
    CHOREOGRAPHY = "choreography"


TERMINAL_STATUSES = (
    PredictionStatus.SUCCEEDED.value,
    PredictionStatus.FAILED.value,
    PredictionStatus.CANCELED.value,
)
FAILURE_STATUSES = (
    PredictionStatus.FAILED.value,
    PredictionStatus.CANCELED.value,
)


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


class PredictionRecord(Base):
    __tablename__ = "predictions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    prediction_id = Column(String(255), unique=True, nullable=False)
    prediction_type = Column(String(50), nullable=True)
    status = Column(String(50), nullable=False, default=PredictionStatus.STARTING.value, index=True)
    input_data = Column(JSON(none_as_null=True), nullable=True)
    output_data = Column(JSON(none_as_null=True), nullable=True)
    error_message = Column(Text, nullable=True)
    # Null only for rows created by a webhook that beat the submit insert
    user_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


def init_db():
    Base.metadata.create_all(bind=engine)
