import logging
import uuid
from typing import Iterator, Optional, Tuple

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from .assembler import build_import_request
from .client import ImportServiceClient
from .column_mapper import (
    TRANSACTION_FIELDS,
    AutoMap,
    MappingState,
    SetMapping,
    mapped_preview,
    reduce_mapping,
)
from .config import get_settings
from .csv_parser import ParsedTable, detect_separator, parse_csv
from .errors import InputRejected, RemoteFailure, ValidationFailure
from .models import (
    Draft,
    DraftResponse,
    FieldMappingView,
    MappingRequest,
    SeparatorRequest,
    SubmitResponse,
    TransactionField,
)
from .utils import load_draft, save_draft

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Bucket CSV Import API")

# CORS middleware for the web frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

CSV_MEDIA_TYPES = {"text/csv", "application/csv"}
RAW_PREVIEW_LINES = 5


def get_import_client() -> Iterator[ImportServiceClient]:
    client = ImportServiceClient(get_settings())
    try:
        yield client
    finally:
        client.close()


def decode_upload(content_type: Optional[str], contents: bytes) -> str:
    """Check the declared media type and decode the file as UTF-8 text"""
    media_type = (content_type or "").split(";")[0].strip().lower()
    if media_type not in CSV_MEDIA_TYPES:
        raise InputRejected(
            f"Please upload a valid CSV file. Received type: {content_type or 'unknown'}"
        )
    if not contents:
        raise InputRejected("File is empty")
    try:
        return contents.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise InputRejected(
            "File encoding error. Please ensure the file is UTF-8 encoded"
        )


def raw_preview(content: str) -> str:
    lines = content.split("\n")
    preview = "\n".join(lines[:RAW_PREVIEW_LINES])
    if len(lines) > RAW_PREVIEW_LINES:
        preview += "\n..."
    return preview


def get_draft_or_404(draft_id: str) -> Draft:
    draft = load_draft(draft_id)
    if draft is None:
        raise HTTPException(status_code=404, detail="Import draft not found")
    return draft


def parse_draft(draft: Draft) -> Tuple[ParsedTable, MappingState]:
    table = parse_csv(draft.file_content, draft.separator)
    if table.arity_mismatches:
        logger.debug(
            "Draft %s: rows %s do not match the header width",
            draft.id,
            table.arity_mismatches,
        )
    return table, MappingState.from_pairs(draft.mapping)


def draft_response(draft: Draft) -> DraftResponse:
    table, state = parse_draft(draft)
    return DraftResponse(
        id=draft.id,
        file_name=draft.file_name,
        separator=draft.separator,
        detected_separator=draft.detected_separator,
        headers=table.headers,
        mapping=[
            FieldMappingView(field_name=key, csv_header=state.get(key))
            for key, _ in TRANSACTION_FIELDS
        ],
        total_rows=len(table.rows),
        empty=table.is_empty,
        preview=mapped_preview(table.rows, state),
        raw_preview=raw_preview(draft.file_content),
    )


def store_mapping(draft: Draft, state: MappingState) -> Draft:
    return draft.model_copy(update={"mapping": [list(e) for e in state.entries]})


@app.get("/")
def read_root():
    return {"message": "Bucket CSV Import API"}


@app.get("/fields")
def get_fields():
    """Get the transaction fields CSV columns can be mapped to"""
    return {
        "fields": [
            TransactionField(key=key, label=label) for key, label in TRANSACTION_FIELDS
        ]
    }


@app.post("/upload", response_model=DraftResponse)
async def upload_file(file: UploadFile = File(...)):
    """Upload a CSV file and start an import draft"""
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")

    contents = await file.read()
    try:
        text = decode_upload(file.content_type, contents)
    except InputRejected as e:
        raise HTTPException(status_code=400, detail=e.message)

    separator = detect_separator(text)
    table = parse_csv(text, separator)
    state = reduce_mapping(MappingState(), AutoMap(tuple(table.headers)))

    draft = store_mapping(
        Draft(
            id=uuid.uuid4().hex,
            file_name=file.filename,
            file_content=text,
            separator=separator,
            detected_separator=separator,
        ),
        state,
    )
    await run_in_threadpool(save_draft, draft)
    logger.info(
        "Draft %s created from %s: separator %r, %d rows, %d fields auto-mapped",
        draft.id,
        draft.file_name,
        separator.value,
        len(table.rows),
        len(state.entries),
    )
    return draft_response(draft)


@app.get("/drafts/{draft_id}", response_model=DraftResponse)
def get_draft(draft_id: str):
    """Get headers, mapping and preview of a draft"""
    return draft_response(get_draft_or_404(draft_id))


@app.post("/drafts/{draft_id}/separator", response_model=DraftResponse)
def set_separator(draft_id: str, request: SeparatorRequest):
    """Override the detected separator; re-parses and re-runs auto-mapping"""
    draft = get_draft_or_404(draft_id)
    table = parse_csv(draft.file_content, request.separator)
    state = reduce_mapping(MappingState(), AutoMap(tuple(table.headers)))

    draft = store_mapping(draft.model_copy(update={"separator": request.separator}), state)
    save_draft(draft)
    return draft_response(draft)


@app.post("/drafts/{draft_id}/mapping", response_model=DraftResponse)
def map_field(draft_id: str, request: MappingRequest):
    """Map a transaction field to a CSV column (or unmap it with null)"""
    draft = get_draft_or_404(draft_id)
    _, state = parse_draft(draft)

    try:
        state = reduce_mapping(
            state, SetMapping(request.field_name, request.csv_header or None)
        )
    except ValidationFailure as e:
        raise HTTPException(status_code=400, detail=e.message)

    draft = store_mapping(draft, state)
    save_draft(draft)
    return draft_response(draft)


@app.post("/drafts/{draft_id}/submit", response_model=SubmitResponse)
def submit_draft(
    draft_id: str,
    request: Request,
    bucket: Optional[str] = None,
    client: ImportServiceClient = Depends(get_import_client),
):
    """Send the draft to the ledger backend as a new import"""
    draft = get_draft_or_404(draft_id)
    table, state = parse_draft(draft)

    try:
        import_request = build_import_request(
            file_name=draft.file_name,
            file_content=draft.file_content,
            separator=draft.separator,
            bucket_id=bucket,
            mapping=state,
            row_count=len(table.rows),
        )
    except ValidationFailure as e:
        raise HTTPException(status_code=400, detail=e.message)

    try:
        created = client.create_import(import_request, cookies=dict(request.cookies))
    except RemoteFailure as e:
        raise HTTPException(status_code=502, detail=e.message)

    if created.import_id is None:
        return SubmitResponse(
            message="Import created successfully! Transactions are being processed automatically."
        )
    return SubmitResponse(import_id=created.import_id, message="Import created successfully")


@app.get("/imports")
def list_imports(request: Request, client: ImportServiceClient = Depends(get_import_client)):
    try:
        return {"imports": client.list_imports(cookies=dict(request.cookies))}
    except RemoteFailure as e:
        raise HTTPException(status_code=502, detail=e.message)


@app.get("/imports/{import_id}")
def get_import(
    import_id: str,
    request: Request,
    client: ImportServiceClient = Depends(get_import_client),
):
    try:
        return client.get_import(import_id, cookies=dict(request.cookies))
    except RemoteFailure as e:
        raise HTTPException(status_code=502, detail=e.message)
