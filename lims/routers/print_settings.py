from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lims.database import get_db
from lims.schemas.print_setting import PrintSettings
from lims.services.print_settings import load_print_settings, save_print_settings

router = APIRouter(prefix="/api/print-settings", tags=["print-settings"])


@router.get("/{branch_id}")
def get_print_settings(branch_id: str, db: Session = Depends(get_db)):
    return {"statusCode": 200, "message": "Success", "data": load_print_settings(db, branch_id).model_dump()}


@router.put("/{branch_id}")
def update_print_settings(branch_id: str, payload: PrintSettings, db: Session = Depends(get_db)):
    saved = save_print_settings(db, branch_id, payload)
    return {"statusCode": 200, "message": "Print settings updated successfully", "data": saved.model_dump()}
