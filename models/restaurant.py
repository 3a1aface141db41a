# models/restaurant.py
from pydantic import BaseModel, Field
from typing import Optional, List, Any

class Geometry(BaseModel):
    type: str = "Point"
    coordinates: List[float] = Field(min_length=2, max_length=2)

class LocationIn(BaseModel):
    nickname: str = Field(min_length=1)
    geometry: Geometry

class RestaurantCreate(BaseModel):
    name: str = Field(min_length=2)
    cuisines: List[str] = Field(default_factory=list)
    dietary_requirements: List[str] = Field(default_factory=list)
    locations: List[LocationIn] = Field(default_factory=list)

class LocationUpdate(LocationIn):
    # existing locations keep their id so deals referencing them still resolve
    id: Optional[str] = None

class RestaurantUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2)
    cuisines: Optional[List[str]] = None
    dietary_requirements: Optional[List[str]] = None
    locations: Optional[List[LocationUpdate]] = None

class RestaurantStatusChange(BaseModel):
    status: str

class LocationOut(BaseModel):
    id: Optional[str] = None
    nickname: Optional[str] = None
    geometry: Optional[dict[str, Any]] = None

class RestaurantOut(BaseModel):
    id: str
    name: str
    status: Optional[str] = None
    cuisines: List[str] = Field(default_factory=list)
    dietary_requirements: List[str] = Field(default_factory=list)
    locations: List[LocationOut] = Field(default_factory=list)
    role: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

class StaffAssignRequest(BaseModel):
    user_id: str
    role: str
