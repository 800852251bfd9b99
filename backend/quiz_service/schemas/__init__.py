"""
Pydantic schemas for request/response validation.
"""
from .quiz import (
    AnswersRequest,
    LeaveRequest,
    StartResponse,
    SubmitResponse,
    ResultResponse,
)

__all__ = [
    "AnswersRequest",
    "LeaveRequest",
    "StartResponse",
    "SubmitResponse",
    "ResultResponse",
]
