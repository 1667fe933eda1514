# Request and response models for the import API
from pydantic import BaseModel
from typing import Dict, List, Optional, Union

from .csv_parser import Separator


class TransactionField(BaseModel):
    key: str
    label: str


class FieldMappingView(BaseModel):
    field_name: str
    csv_header: Optional[str] = None


class MappingRequest(BaseModel):
    field_name: str
    csv_header: Optional[str] = None


class SeparatorRequest(BaseModel):
    separator: Separator


class Draft(BaseModel):
    id: str
    file_name: str
    file_content: str
    separator: Separator
    detected_separator: Separator
    mapping: List[List[Optional[str]]] = []


class DraftResponse(BaseModel):
    id: str
    file_name: str
    separator: Separator
    detected_separator: Separator
    headers: List[str]
    mapping: List[FieldMappingView]
    total_rows: int
    empty: bool
    preview: List[Dict[str, Union[float, str]]]
    raw_preview: str


class SubmitResponse(BaseModel):
    import_id: Optional[Union[int, str]] = None
    message: str
