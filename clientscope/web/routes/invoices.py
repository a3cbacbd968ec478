"""Client invoice routes.

Invoices unlinked from a deleted project have no project and therefore
fall outside every client's scope.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import col
from sqlmodel.ext.asyncio.session import AsyncSession

from clientscope.access.guard import get_scoped_or_raise, list_scoped
from clientscope.access.identity import Identity
from clientscope.models.api import InvoiceResponse
from clientscope.models.database import Invoice
from clientscope.storage.database import get_engine
from clientscope.web.auth.rbac import get_identity

router = APIRouter(prefix="/api/client/invoices", tags=["invoices"])


@router.get("", response_model=list[InvoiceResponse])
async def list_invoices(
    identity: Identity = Depends(get_identity),
    engine: AsyncEngine = Depends(get_engine),
) -> list[Invoice]:
    async with AsyncSession(engine) as session:
        return await list_scoped(
            session, identity, Invoice, order_by=(col(Invoice.created_at).desc(),)
        )


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: str,
    identity: Identity = Depends(get_identity),
    engine: AsyncEngine = Depends(get_engine),
) -> Invoice:
    async with AsyncSession(engine) as session:
        return await get_scoped_or_raise(session, identity, Invoice, invoice_id)
