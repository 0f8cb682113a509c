from fastapi import Header

from lims.config import settings


def get_branch_id(x_branch_id: str | None = Header(default=None)) -> str:
    return x_branch_id.strip() if x_branch_id and x_branch_id.strip() else settings.default_branch_id
