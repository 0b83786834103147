"""Frontend UI server using FastAPI + Jinja2."""
from fastapi import FastAPI, Request, Form, UploadFile, File
from fastapi.responses import RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from urllib.parse import quote as quote_path, urlencode
from pathlib import Path
import httpx
import os
from typing import Optional

app = FastAPI(title="Quote Builder UI", version="0.1.0")

# Configuration
BACKEND_BASE = os.getenv("BACKEND_BASE", "http://localhost:8000")
PORT = int(os.getenv("PORT", "8001"))
TIMEOUT = 30.0

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def backend_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=BACKEND_BASE, timeout=TIMEOUT)


def error_message(response: httpx.Response) -> str:
    """Extract the user-facing message from a backend error response."""
    try:
        detail = response.json().get("detail")
    except ValueError:
        return f"Backend error ({response.status_code})"
    if isinstance(detail, dict):
        return detail.get("message", str(detail))
    return str(detail)


def back_to_index(message: Optional[str] = None, **params) -> RedirectResponse:
    query = {key: value for key, value in params.items() if value}
    if message:
        query["message"] = message
    url = "/" + (f"?{urlencode(query)}" if query else "")
    return RedirectResponse(url=url, status_code=303)


@app.get("/")
async def index(
    request: Request,
    q: str = "",
    show_history: bool = False,
    show_report: bool = False,
    message: Optional[str] = None
):
    """Render the quote builder page."""
    try:
        async with backend_client() as client:
            catalog = (await client.get("/catalog", params={"q": q})).json()
            quote = (await client.get("/quote")).json()
            history = (await client.get("/history")).json() if show_history else None
            report = (await client.get("/reports/totals-by-date")).json() if show_report else None
    except httpx.HTTPError as e:
        return templates.TemplateResponse(
            request,
            "index.html",
            {"error": f"Backend unavailable: {str(e)}", "q": q, "catalog": None, "quote": None,
             "history": None, "report": None, "message": None},
            status_code=502
        )

    return templates.TemplateResponse(request, "index.html", {
        "q": q,
        "catalog": catalog,
        "quote": quote,
        "history": history,
        "report": report,
        "show_history": show_history,
        "show_report": show_report,
        "message": message,
        "error": None,
    })


@app.post("/quote/items")
async def add_item(sku: str = Form(...), q: str = Form("")):
    """Add a catalog item to the quote."""
    async with backend_client() as client:
        response = await client.post("/quote/items", json={"sku": sku})
    if response.status_code != 200:
        return back_to_index(error_message(response), q=q)
    return back_to_index(q=q)


@app.post("/quote/items/{sku:path}")
async def update_quantity(sku: str, quantity: str = Form("")):
    """Overwrite a line item quantity."""
    async with backend_client() as client:
        response = await client.put(f"/quote/items/{quote_path(sku, safe='')}", json={"quantity": quantity})
    if response.status_code != 200:
        return back_to_index(error_message(response))
    return back_to_index()


@app.post("/quote/customer")
async def update_customer(customer_name: str = Form(""), customer_email: str = Form("")):
    """Set customer name and email."""
    async with backend_client() as client:
        await client.put("/quote/customer", json={
            "customerName": customer_name,
            "customerEmail": customer_email
        })
    return back_to_index()


@app.post("/quote/reset")
async def reset_quote():
    """Discard the working quote."""
    async with backend_client() as client:
        await client.delete("/quote")
    return back_to_index()


@app.post("/quote/pdf")
async def download_pdf():
    """Proxy the PDF download; an empty quote just returns to the page."""
    async with backend_client() as client:
        response = await client.post("/quote/pdf")
    if response.status_code == 204:
        return back_to_index()
    if response.status_code != 200:
        return back_to_index(error_message(response))
    return Response(
        content=response.content,
        media_type="application/pdf",
        headers={"Content-Disposition": response.headers.get("content-disposition", "attachment")}
    )


@app.post("/quote/email")
async def email_quote():
    """Proxy the email action and show its outcome."""
    async with backend_client() as client:
        response = await client.post("/quote/email")
    if response.status_code == 204:
        return back_to_index()
    if response.status_code != 200:
        return back_to_index(error_message(response))
    return back_to_index(response.json()["message"])


@app.post("/upload/{kind}")
async def upload(kind: str, file: UploadFile = File(...)):
    """Forward an items or customers CSV to the backend."""
    endpoint = {"items": "/catalog/import", "customers": "/customers/import"}.get(kind)
    if endpoint is None:
        return back_to_index(f"Unknown upload type '{kind}'")
    content = await file.read()
    async with backend_client() as client:
        response = await client.post(endpoint, files={"file": (file.filename or "upload.csv", content, "text/csv")})
    if response.status_code != 200:
        return back_to_index(error_message(response))
    return back_to_index(response.json()["message"])


@app.post("/history/{quote_id}/load")
async def load_quote(quote_id: int):
    """Reopen a saved quote for editing."""
    async with backend_client() as client:
        response = await client.post(f"/history/{quote_id}/load")
    if response.status_code != 200:
        return back_to_index(error_message(response))
    return back_to_index()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
