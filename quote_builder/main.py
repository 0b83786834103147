"""FastAPI application entry point."""
from fastapi import FastAPI, HTTPException, Depends, Request, UploadFile, File
from fastapi.responses import Response
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Optional
import logging
import uuid
import time
from datetime import datetime, timezone

from quote_builder.actions import QuoteSession
from quote_builder.cart import format_money
from quote_builder.config import settings
from quote_builder.exceptions import (
    QuoteBuilderError, ImportValidationError, MissingRecipientError,
    LineItemNotFoundError, CatalogItemNotFoundError, QuoteNotFoundError,
    PDFGenerationError, StoreUnavailableError
)
from quote_builder.ledger import QuoteLedger
from quote_builder.logging_conf import (
    setup_logging, log_endpoint_request, log_endpoint_response, log_error
)
from quote_builder.reporting import grand_total
from quote_builder.schemas import (
    ErrorResponse, AddItemRequest, SetQuantityRequest, CustomerUpdate,
    WorkingQuoteResponse, CatalogResponse, CustomersResponse, ImportResponse,
    CommitResponse, EmailOutcome, HistoryResponse, TotalsByDateResponse, Quote
)
from quote_builder.store import open_sql_store

logger = logging.getLogger(__name__)


NOT_FOUND_ERRORS = (LineItemNotFoundError, CatalogItemNotFoundError, QuoteNotFoundError)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def get_trace_id(request: Request) -> str:
    return getattr(request.state, 'trace_id', 'unknown')


def error_status(error: Exception) -> int:
    """HTTP status for a quote builder error."""
    if isinstance(error, NOT_FOUND_ERRORS):
        return 404
    if isinstance(error, QuoteBuilderError):
        return 400
    if isinstance(error, StoreUnavailableError):
        return 503
    return 500


def http_error(error: Exception, context: str, trace_id: str) -> HTTPException:
    """Log ``error`` and wrap it as an ``HTTPException`` with an ErrorResponse body."""
    log_error(error, context, trace_id)
    details = None
    if isinstance(error, ImportValidationError):
        details = {"missing_columns": error.missing_columns, "row": error.row}
    body = ErrorResponse(error=type(error).__name__, message=str(error), details=details)
    return HTTPException(status_code=error_status(error), detail=body.model_dump(mode="json"))


def working_quote_response(session: QuoteSession) -> WorkingQuoteResponse:
    working = session.working
    total = working.total()
    return WorkingQuoteResponse(
        customer_name=working.customer_name or None,
        customer_email=working.customer_email or None,
        line_items=working.line_items,
        total=total,
        total_formatted=format_money(total, settings.currency_symbol),
        version=working.version
    )


# =============================================================================
# APPLICATION SETUP
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store and history on startup, release the store on shutdown."""
    setup_logging()
    store = open_sql_store(settings.db_url)
    ledger = QuoteLedger(store, key=settings.history_key)
    app.state.session = QuoteSession(ledger)
    logger.info(f"Starting Quote Builder in {settings.app_env} mode with {len(ledger)} saved quotes")
    yield
    store.close()
    logger.info("Shutting down Quote Builder")


app = FastAPI(
    title="Quote Builder",
    description="Catalog browsing, quote assembly, PDF export and quote history",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_session(request: Request) -> QuoteSession:
    """The single quoting session owned by the application."""
    return request.app.state.session


# =============================================================================
# MIDDLEWARE
# =============================================================================

@app.middleware("http")
async def add_trace_id(request: Request, call_next):
    """Add trace ID to request for logging."""
    trace_id = str(uuid.uuid4())
    request.state.trace_id = trace_id

    response = await call_next(request)
    response.headers["X-Trace-ID"] = trace_id

    return response


# =============================================================================
# ENDPOINTS
# =============================================================================

@app.get("/healthz")
async def health_check():
    """Health check endpoint."""
    return {
        "ok": True,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


# -----------------------------------------------------------------------------
# Catalog and customers
# -----------------------------------------------------------------------------

@app.get("/catalog", response_model=CatalogResponse)
async def search_catalog(q: str = "", session: QuoteSession = Depends(get_session)):
    """Search the catalog by sku or description."""
    items = list(session.catalog.search(q))
    return CatalogResponse(items=items, total_count=len(items))


async def _import(kind: str, file: UploadFile, request: Request, session: QuoteSession) -> ImportResponse:
    start_time = time.time()
    trace_id = get_trace_id(request)
    endpoint = "/catalog/import" if kind == "items" else "/customers/import"
    log_endpoint_request(endpoint, "POST", trace_id, filename=file.filename)

    try:
        data = await file.read()
        if kind == "items":
            count = session.import_items(data, trace_id)
            message = f"Loaded {count} catalog items."
        else:
            count = session.import_customers(data, trace_id)
            message = "Customers uploaded!"
    except ImportValidationError as e:
        latency_ms = (time.time() - start_time) * 1000
        log_endpoint_response(endpoint, "POST", trace_id, 400, latency_ms)
        raise http_error(e, f"import_{kind}", trace_id)

    latency_ms = (time.time() - start_time) * 1000
    log_endpoint_response(endpoint, "POST", trace_id, 200, latency_ms, row_count=count)
    return ImportResponse(kind=kind, row_count=count, message=message)


@app.post("/catalog/import", response_model=ImportResponse)
async def import_catalog(
    request: Request,
    file: UploadFile = File(...),
    session: QuoteSession = Depends(get_session)
):
    """Replace the catalog with an uploaded CSV (sku, description, price)."""
    return await _import("items", file, request, session)


@app.get("/customers", response_model=CustomersResponse)
async def list_customers(session: QuoteSession = Depends(get_session)):
    """Customers imported during this session."""
    customers = session.customers.customers()
    return CustomersResponse(customers=customers, total_count=len(customers))


@app.post("/customers/import", response_model=ImportResponse)
async def import_customers(
    request: Request,
    file: UploadFile = File(...),
    session: QuoteSession = Depends(get_session)
):
    """Replace the customer list with an uploaded CSV (name, phone, status, salesRep)."""
    return await _import("customers", file, request, session)


# -----------------------------------------------------------------------------
# Working quote
# -----------------------------------------------------------------------------

@app.get("/quote", response_model=WorkingQuoteResponse)
async def get_working_quote(session: QuoteSession = Depends(get_session)):
    """Current working quote with its total."""
    return working_quote_response(session)


@app.post("/quote/items", response_model=WorkingQuoteResponse)
async def add_quote_item(
    body: AddItemRequest,
    request: Request,
    session: QuoteSession = Depends(get_session)
):
    """Add one unit of a catalog item to the working quote."""
    try:
        session.add_to_quote(body.sku)
    except CatalogItemNotFoundError as e:
        raise http_error(e, "add_quote_item", get_trace_id(request))
    return working_quote_response(session)


@app.put("/quote/items/{sku:path}", response_model=WorkingQuoteResponse)
async def set_quote_item_quantity(
    sku: str,
    body: SetQuantityRequest,
    request: Request,
    session: QuoteSession = Depends(get_session)
):
    """Overwrite a line item quantity; invalid values become 1."""
    try:
        session.working.set_quantity(sku, body.quantity)
    except LineItemNotFoundError as e:
        raise http_error(e, "set_quote_item_quantity", get_trace_id(request))
    return working_quote_response(session)


@app.put("/quote/customer", response_model=WorkingQuoteResponse)
async def set_quote_customer(body: CustomerUpdate, session: QuoteSession = Depends(get_session)):
    """Attach customer name and email to the working quote."""
    session.working.set_customer(body.customer_name, body.customer_email)
    return working_quote_response(session)


@app.delete("/quote", response_model=WorkingQuoteResponse)
async def reset_working_quote(session: QuoteSession = Depends(get_session)):
    """Discard the working quote."""
    session.working.reset()
    return working_quote_response(session)


@app.post("/quote/commit", response_model=CommitResponse)
async def commit_quote(request: Request, session: QuoteSession = Depends(get_session)):
    """Save the working quote to history; an empty quote is not saved."""
    trace_id = get_trace_id(request)
    try:
        quote = session.commit(trace_id)
    except StoreUnavailableError as e:
        raise http_error(e, "commit_quote", trace_id)
    return CommitResponse(committed=quote is not None, quote=quote)


@app.post("/quote/pdf")
async def download_quote_pdf(request: Request, session: QuoteSession = Depends(get_session)):
    """Save the working quote and return it as a PDF; 204 when it is empty."""
    start_time = time.time()
    trace_id = get_trace_id(request)
    log_endpoint_request("/quote/pdf", "POST", trace_id, line_count=len(session.working))

    try:
        result = session.download_pdf(trace_id)
    except (PDFGenerationError, StoreUnavailableError) as e:
        latency_ms = (time.time() - start_time) * 1000
        log_endpoint_response("/quote/pdf", "POST", trace_id, error_status(e), latency_ms)
        raise http_error(e, "download_quote_pdf", trace_id)

    latency_ms = (time.time() - start_time) * 1000
    if result is None:
        log_endpoint_response("/quote/pdf", "POST", trace_id, 204, latency_ms)
        return Response(status_code=204)

    quote, pdf_bytes = result
    log_endpoint_response("/quote/pdf", "POST", trace_id, 200, latency_ms, quote_id=quote.id)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{settings.pdf_filename}"',
            "X-Quote-ID": str(quote.id)
        }
    )


@app.post("/quote/email", response_model=Optional[EmailOutcome])
async def email_quote(request: Request, session: QuoteSession = Depends(get_session)):
    """Save the working quote for emailing; delivery is not configured."""
    trace_id = get_trace_id(request)
    try:
        outcome = session.send_email(trace_id)
    except (MissingRecipientError, StoreUnavailableError) as e:
        raise http_error(e, "email_quote", trace_id)

    if outcome is None:
        return Response(status_code=204)
    return outcome


# -----------------------------------------------------------------------------
# History and reports
# -----------------------------------------------------------------------------

@app.get("/history", response_model=HistoryResponse)
async def list_history(session: QuoteSession = Depends(get_session)):
    """Committed quotes, newest first."""
    quotes = session.ledger.list()
    return HistoryResponse(quotes=quotes, total_count=len(quotes))


@app.get("/history/{quote_id}", response_model=Quote)
async def get_history_quote(quote_id: int, request: Request, session: QuoteSession = Depends(get_session)):
    """One committed quote."""
    quote = session.ledger.get(quote_id)
    if quote is None:
        raise http_error(QuoteNotFoundError(f"Quote with ID {quote_id} not found"),
                         "get_history_quote", get_trace_id(request))
    return quote


@app.post("/history/{quote_id}/load", response_model=WorkingQuoteResponse)
async def load_history_quote(quote_id: int, request: Request, session: QuoteSession = Depends(get_session)):
    """Copy a committed quote into the working quote; the record is kept."""
    try:
        session.load_quote(quote_id)
    except QuoteNotFoundError as e:
        raise http_error(e, "load_history_quote", get_trace_id(request))
    return working_quote_response(session)


@app.get("/reports/totals-by-date", response_model=TotalsByDateResponse)
async def report_totals_by_date(sort: bool = False, session: QuoteSession = Depends(get_session)):
    """Quote totals grouped by commit date."""
    totals = session.totals_by_date(sort=sort)
    return TotalsByDateResponse(totals=totals, grand_total=grand_total(session.ledger.list()))
