# models/deal.py
from datetime import datetime
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List
from utils.dates import to_naive_utc

class DealCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=1000)
    start_date: datetime
    end_date: datetime
    locations: List[str] = Field(min_length=1)

    @field_validator("start_date", "end_date")
    @classmethod
    def _naive_utc(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def _check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self

class DealEdit(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=1000)
    end_date: datetime
    locations: List[str] = Field(min_length=1)

    @field_validator("end_date")
    @classmethod
    def _naive_utc(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

class DealExpire(BaseModel):
    end_date: datetime

    @field_validator("end_date")
    @classmethod
    def _naive_utc(cls, v: datetime) -> datetime:
        return to_naive_utc(v)
