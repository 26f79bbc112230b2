"""SQLAlchemy declarative base and the dataset tables."""

from sqlalchemy import Index, Integer, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""


class ItemModel(Base):
    """아이템 정의 (ItemData). 적재 후 변경 없음."""

    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name_key: Mapped[str] = mapped_column(Text, nullable=False)
    icon: Mapped[str] = mapped_column(Text, nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    link_equipment_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    category: Mapped[str] = mapped_column(Text, nullable=False, default="")
    rare_grade: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("idx_items_id", "id"),
        Index("idx_items_link_equipment_id", "link_equipment_id"),
        Index("idx_items_category", "category"),
    )


class EquipmentStatsModel(Base):
    """장비 수치 (EquipmentData). items.link_equipment_id 로 0..1 연결."""

    __tablename__ = "equipment_stats"

    equipment_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=False
    )
    balance: Mapped[str] = mapped_column(Text, nullable=False)
    defense: Mapped[int] = mapped_column(Integer, nullable=False)
    impact: Mapped[str] = mapped_column(Text, nullable=False)
    max_attack: Mapped[int] = mapped_column(Integer, nullable=False)


class LocalizedItemModel(Base):
    """현지화 문자열 (StrSheet_Item). items.id 와 1:1."""

    __tablename__ = "localized_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    tooltip: Mapped[str] = mapped_column(Text, nullable=False, default="")


# 대소문자 무시 이름 검색용
Index("idx_localized_items_name", func.lower(LocalizedItemModel.__table__.c.name))
