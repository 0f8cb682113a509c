from datetime import datetime

from sqlalchemy.orm import Session

from lims.models.print_setting import PrintSetting
from lims.schemas.print_setting import PrintSettings


def _to_schema(row: PrintSetting) -> PrintSettings:
    return PrintSettings(
        with_letterhead=row.with_letterhead,
        letterhead=row.letterhead or {},
        design=row.design or {},
        general=row.general or {},
        show_hide=row.show_hide or {},
    )


def _write(row: PrintSetting, data: PrintSettings) -> None:
    row.with_letterhead = data.with_letterhead
    row.letterhead = data.letterhead.model_dump()
    row.design = data.design.model_dump()
    row.general = data.general.model_dump()
    row.show_hide = data.show_hide.model_dump()
    row.updated_at = datetime.utcnow()


def load_print_settings(db: Session, branch_id: str) -> PrintSettings:
    """Branch print settings; a branch without any gets the defaults stored on first read."""
    row = db.get(PrintSetting, branch_id)
    if row is None:
        row = PrintSetting(branch_id=branch_id)
        _write(row, PrintSettings())
        db.add(row)
        db.commit()
        db.refresh(row)
    return _to_schema(row)


def save_print_settings(db: Session, branch_id: str, data: PrintSettings) -> PrintSettings:
    row = db.get(PrintSetting, branch_id)
    if row is None:
        row = PrintSetting(branch_id=branch_id)
        db.add(row)
    _write(row, data)
    db.commit()
    db.refresh(row)
    return _to_schema(row)
