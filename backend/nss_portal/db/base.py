from sqlalchemy.orm import DeclarativeBase


class AbstractSQLModel(DeclarativeBase):
    pass
