from sqlalchemy import Column, String
from sqlalchemy.orm import declarative_base
from typing import Any, Dict, Tuple

Base = declarative_base()


class BaseModel(Base):
    __abstract__ = True

    # (wire name, attribute name) pairs, in output order
    __wire_fields__: Tuple[Tuple[str, str], ...] = ()

    # ISO-8601 strings, stamped by the application rather than the database
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert model instance to its camelCase wire dictionary"""
        if not self.__wire_fields__:
            return {
                column.key: getattr(self, column.key)
                for column in self.__mapper__.column_attrs
            }
        return {
            wire_name: getattr(self, attr_name)
            for wire_name, attr_name in self.__wire_fields__
        }

    @classmethod
    def column_values(cls, wire: Dict[str, Any]) -> Dict[Column, Any]:
        """Map a wire dictionary onto table columns, skipping unknown keys"""
        columns = cls.__mapper__.columns
        return {
            columns[attr_name]: wire[wire_name]
            for wire_name, attr_name in cls.__wire_fields__
            if wire_name in wire
        }
