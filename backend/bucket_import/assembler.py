"""
Assembly of the request sent to the import service.

build_import_request is pure: it validates the submission and packages the
file, separator, bucket and mapping into an ImportRequest. Sending it is the
caller's job.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .column_mapper import MappingState
from .csv_parser import Separator
from .errors import MissingBucketError, NoDataError


class MappingEntry(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    csv_header: str
    field_name: str


class ImportRequest(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    file_name: str
    file_content: str
    separator: Separator
    bucket_id: int
    mappings: List[MappingEntry]

    def to_payload(self) -> dict:
        """JSON body in the camelCase form the import service expects."""
        return self.model_dump(mode="json", by_alias=True)


def _resolve_bucket_id(bucket_id: Optional[Union[int, str]]) -> int:
    if bucket_id is None or (isinstance(bucket_id, str) and not bucket_id.strip()):
        raise MissingBucketError("No bucket ID found in URL parameters.")
    try:
        return int(bucket_id)
    except (TypeError, ValueError):
        raise MissingBucketError(f"Invalid bucket ID: {bucket_id}")


def build_import_request(
    file_name: str,
    file_content: str,
    separator: Separator,
    bucket_id: Optional[Union[int, str]],
    mapping: MappingState,
    row_count: int,
) -> ImportRequest:
    """
    Build the ImportRequest for a confirmed mapping.

    Only fields mapped to a non-empty header are sent, in mapping order.

    Args:
        file_name: Name of the uploaded file
        file_content: Unmodified file text
        separator: Separator the file was parsed with
        bucket_id: Target bucket, as int or numeric string
        mapping: Current field mapping
        row_count: Number of parsed data rows

    Returns:
        The assembled ImportRequest

    Raises:
        MissingBucketError: if no usable bucket id is given
        NoDataError: if the file has no data rows
    """
    resolved_bucket = _resolve_bucket_id(bucket_id)

    if row_count == 0:
        raise NoDataError("No data to upload.")

    mappings = [
        MappingEntry(csv_header=header, field_name=name)
        for name, header in mapping.mapped()
    ]

    return ImportRequest(
        file_name=file_name,
        file_content=file_content,
        separator=separator,
        bucket_id=resolved_bucket,
        mappings=mappings,
    )
