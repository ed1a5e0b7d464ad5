"""
Response shapes of the external providers.

Only the fields the pipeline reads are declared; everything else the
providers send is ignored.
"""

from pydantic import BaseModel
from typing import List, Optional


# Google Places nearby search


class RawLatLng(BaseModel):
    lat: float
    lng: float


class RawGeometry(BaseModel):
    location: RawLatLng


class RawPlace(BaseModel):
    place_id: Optional[str] = None
    name: Optional[str] = None
    geometry: Optional[RawGeometry] = None
    vicinity: Optional[str] = None
    formatted_address: Optional[str] = None
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    price_level: Optional[int] = None
    types: List[str] = []
    business_status: Optional[str] = None


class NearbySearchResponse(BaseModel):
    status: str = "OK"
    results: List[RawPlace] = []
    error_message: Optional[str] = None


# Gemini generateContent


class GeminiPart(BaseModel):
    text: Optional[str] = None


class GeminiContent(BaseModel):
    parts: List[GeminiPart] = []
    role: Optional[str] = None


class GeminiCandidate(BaseModel):
    content: Optional[GeminiContent] = None
    finishReason: Optional[str] = None


class GeminiResponse(BaseModel):
    candidates: List[GeminiCandidate] = []

    def first_text(self) -> Optional[str]:
        if not self.candidates or self.candidates[0].content is None:
            return None
        parts = self.candidates[0].content.parts
        if not parts:
            return None
        return parts[0].text
