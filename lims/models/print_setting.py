from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from lims.database import Base


class PrintSetting(Base):
    __tablename__ = "print_settings"

    branch_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    with_letterhead: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    letterhead: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    design: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    general: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    show_hide: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
