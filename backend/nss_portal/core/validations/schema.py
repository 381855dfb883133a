from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from nss_portal.core.validations.exceptions import RequestValidationError


async def validate_existing_ids(session: AsyncSession, schema, ids, label: str):
    """Reject any id in ``ids`` that has no row in ``schema``."""
    ids = set(ids)
    if not ids:
        return True
    found = set(await session.scalars(select(schema.id).where(schema.id.in_(ids))))
    missing = sorted(ids - found)
    if missing:
        raise RequestValidationError(
            **{f"{label}[{value}]": f"invalid {label}" for value in missing}
        )
    return True


async def validate_unique(session: AsyncSession, **kwargs):
    """
    ``unique={"email": (Users, value)}`` fails with ``email already exists``.

    String columns compare case-insensitively.
    """
    unique = kwargs.get("unique", {})
    errors = {}
    for key, (schema, value) in unique.items():
        if not value:
            continue
        column = getattr(schema, key)
        if isinstance(value, str):
            condition = func.lower(column) == value.lower()
        else:
            condition = column == value
        if await session.scalar(select(exists().where(condition))):
            errors[key] = f"{key} already exists"
    if errors:
        raise RequestValidationError(**errors)
    return True
