"""Raw vote export as CSV."""

import csv
import io

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from top1000.dependencies import get_client_ip, get_current_user, get_db
from top1000.models.user import User
from top1000.services.client_action_service import ClientActionGuard
from top1000.services.vote_service import EXPORT_FIELDS, VoteService

router = APIRouter()


@router.get("/data")
async def export_data(
    ip: str = Depends(get_client_ip),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Download every vote as CSV. Rate limited per client address."""
    await ClientActionGuard(db).check(ip, "data")

    rows = await VoteService(db).export_votes()

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_FIELDS)
    writer.writeheader()
    writer.writerows(rows)

    return Response(
        content=buffer.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="top1000.csv"'},
    )
