"""
CSV templates, export and all-or-nothing import for products, customers and purchases.
"""
from fastapi import APIRouter, Depends, File, UploadFile, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session
from ...dependencies import get_db
from ...security.auth import get_current_user
from ...domain.enums import ImportEntity
from ...infrastructure import csv_io
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.notifications import CollectingSink
from ...application.services_import_export import export_entity, import_entity
from ..common import run

router = APIRouter(prefix="/import-export", tags=["import-export"], dependencies=[Depends(get_current_user)])


def _csv_response(text: str, filename: str) -> Response:
    return Response(
        content=text,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/{entity}/template")
def download_template(entity: ImportEntity):
    return _csv_response(csv_io.template_csv(entity), f"{entity.value}_import_template.csv")


@router.get("/{entity}/export")
def export_csv(entity: ImportEntity, db: Session = Depends(get_db)):
    sink = CollectingSink()
    text, count = run(f"exporting {entity.value}", lambda: export_entity(UnitOfWork(db), entity, sink))
    response = _csv_response(text, f"{entity.value}_export.csv")
    response.headers["X-Row-Count"] = str(count)
    return response


@router.post("/{entity}/import")
async def import_csv(entity: ImportEntity, file: UploadFile = File(...), db: Session = Depends(get_db)):
    raw = await file.read()
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="File must be UTF-8 encoded CSV")
    sink = CollectingSink()
    imported = run(f"importing {entity.value}", lambda: import_entity(UnitOfWork(db), entity, text, sink))
    return {"entity": entity.value, "imported": imported, "messages": sink.messages}
