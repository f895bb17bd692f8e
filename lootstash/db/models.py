"""SQLAlchemy declarative base and catalog ORM models.

Property lists are JSON arrays of PropertyAssignment dicts.
"""

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import JSON


class Base(DeclarativeBase):
    """Base class for all database models."""


class StatModel(Base):
    """ORM model for filterable stat codes."""

    __tablename__ = "stats"

    code: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(String, default="")
    category: Mapped[str] = mapped_column(String, nullable=False, default="Other")
    aliases: Mapped[list] = mapped_column(JSON, default=list)
    is_variable: Mapped[bool] = mapped_column(Boolean, default=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)


class ClassModel(Base):
    """ORM model for character classes."""

    __tablename__ = "classes"

    id: Mapped[str] = mapped_column(String, primary_key=True)  # "ama", "sor", ...
    name: Mapped[str] = mapped_column(String, nullable=False)
    skill_suffix: Mapped[str] = mapped_column(String, default="")
    # [{"name": "Bow And Crossbow", "skills": [...]}, ...]
    skill_trees: Mapped[list] = mapped_column(JSON, default=list)


class ItemBaseModel(Base):
    """ORM model for item bases (armor, weapons, misc)."""

    __tablename__ = "item_bases"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    item_type: Mapped[str] = mapped_column(String, default="")
    item_type2: Mapped[str] = mapped_column(String, default="")
    category: Mapped[str] = mapped_column(String, nullable=False)  # armor, weapon, misc
    sub_category: Mapped[str] = mapped_column(String, default="")
    tier: Mapped[str] = mapped_column(String, default="")

    level: Mapped[int] = mapped_column(Integer, default=0)
    level_req: Mapped[int] = mapped_column(Integer, default=0)
    str_req: Mapped[int] = mapped_column(Integer, default=0)
    dex_req: Mapped[int] = mapped_column(Integer, default=0)
    durability: Mapped[int] = mapped_column(Integer, default=0)
    min_ac: Mapped[int] = mapped_column(Integer, default=0)
    max_ac: Mapped[int] = mapped_column(Integer, default=0)
    min_dam: Mapped[int] = mapped_column(Integer, default=0)
    max_dam: Mapped[int] = mapped_column(Integer, default=0)
    two_hand_min_dam: Mapped[int] = mapped_column(Integer, default=0)
    two_hand_max_dam: Mapped[int] = mapped_column(Integer, default=0)
    speed: Mapped[int] = mapped_column(Integer, default=0)
    max_sockets: Mapped[int] = mapped_column(Integer, default=0)

    normal_code: Mapped[str] = mapped_column(String, default="")
    exceptional_code: Mapped[str] = mapped_column(String, default="")
    elite_code: Mapped[str] = mapped_column(String, default="")
    inv_file: Mapped[str] = mapped_column(String, default="")
    description: Mapped[str] = mapped_column(Text, default="")

    spawnable: Mapped[bool] = mapped_column(Boolean, default=True)
    stackable: Mapped[bool] = mapped_column(Boolean, default=False)
    quest_item: Mapped[bool] = mapped_column(Boolean, default=False)

    image_url: Mapped[str | None] = mapped_column(String, nullable=True)
    icon_variants: Mapped[list] = mapped_column(JSON, default=list)


class UniqueItemModel(Base):
    """ORM model for unique items."""

    __tablename__ = "unique_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    index_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    base_code: Mapped[str] = mapped_column(String, default="")
    base_name: Mapped[str] = mapped_column(String, default="")
    level: Mapped[int] = mapped_column(Integer, default=0)
    level_req: Mapped[int] = mapped_column(Integer, default=0)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    ladder_only: Mapped[bool] = mapped_column(Boolean, default=False)
    properties: Mapped[list] = mapped_column(JSON, default=list)
    inv_file: Mapped[str] = mapped_column(String, default="")
    image_url: Mapped[str | None] = mapped_column(String, nullable=True)


class SetBonusModel(Base):
    """ORM model for full set definitions."""

    __tablename__ = "set_bonuses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    index_id: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    partial_bonuses: Mapped[list] = mapped_column(JSON, default=list)
    full_bonuses: Mapped[list] = mapped_column(JSON, default=list)


class SetItemModel(Base):
    """ORM model for set items."""

    __tablename__ = "set_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    index_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    set_name: Mapped[str] = mapped_column(String, default="")
    base_code: Mapped[str] = mapped_column(String, default="")
    base_name: Mapped[str] = mapped_column(String, default="")
    level: Mapped[int] = mapped_column(Integer, default=0)
    level_req: Mapped[int] = mapped_column(Integer, default=0)
    properties: Mapped[list] = mapped_column(JSON, default=list)
    bonus_properties: Mapped[list] = mapped_column(JSON, default=list)
    inv_file: Mapped[str] = mapped_column(String, default="")
    image_url: Mapped[str | None] = mapped_column(String, nullable=True)


class RuneModel(Base):
    """ORM model for runes."""

    __tablename__ = "runes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    rune_number: Mapped[int] = mapped_column(Integer, default=0)
    level: Mapped[int] = mapped_column(Integer, default=0)
    level_req: Mapped[int] = mapped_column(Integer, default=0)
    weapon_mods: Mapped[list] = mapped_column(JSON, default=list)
    helm_mods: Mapped[list] = mapped_column(JSON, default=list)
    shield_mods: Mapped[list] = mapped_column(JSON, default=list)
    inv_file: Mapped[str] = mapped_column(String, default="")
    image_url: Mapped[str | None] = mapped_column(String, nullable=True)


class GemModel(Base):
    """ORM model for gems."""

    __tablename__ = "gems"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    gem_type: Mapped[str] = mapped_column(String, default="unknown")
    quality: Mapped[str] = mapped_column(String, default="normal")
    transform: Mapped[int] = mapped_column(Integer, default=0)
    weapon_mods: Mapped[list] = mapped_column(JSON, default=list)
    helm_mods: Mapped[list] = mapped_column(JSON, default=list)
    shield_mods: Mapped[list] = mapped_column(JSON, default=list)
    inv_file: Mapped[str] = mapped_column(String, default="")
    image_url: Mapped[str | None] = mapped_column(String, nullable=True)


class RunewordModel(Base):
    """ORM model for runewords. runes holds rune codes in socket order."""

    __tablename__ = "runewords"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    complete: Mapped[bool] = mapped_column(Boolean, default=True)
    ladder_only: Mapped[bool] = mapped_column(Boolean, default=False)
    runes: Mapped[list] = mapped_column(JSON, default=list)
    valid_item_types: Mapped[list] = mapped_column(JSON, default=list)
    excluded_item_types: Mapped[list] = mapped_column(JSON, default=list)
    properties: Mapped[list] = mapped_column(JSON, default=list)
    req_level: Mapped[int] = mapped_column(Integer, default=0)
    image_url: Mapped[str | None] = mapped_column(String, nullable=True)


class ItemTypeModel(Base):
    """ORM model for item types. equiv1/equiv2 are parent type codes."""

    __tablename__ = "item_types"

    code: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    equiv1: Mapped[str] = mapped_column(String, default="")
    equiv2: Mapped[str] = mapped_column(String, default="")
    body_loc1: Mapped[str] = mapped_column(String, default="")
    body_loc2: Mapped[str] = mapped_column(String, default="")
    can_be_magic: Mapped[bool] = mapped_column(Boolean, default=False)
    can_be_rare: Mapped[bool] = mapped_column(Boolean, default=False)
    max_sockets_normal: Mapped[int] = mapped_column(Integer, default=0)
    max_sockets_nightmare: Mapped[int] = mapped_column(Integer, default=0)
    max_sockets_hell: Mapped[int] = mapped_column(Integer, default=0)
    staff_mods: Mapped[str] = mapped_column(String, default="")
    class_restriction: Mapped[str] = mapped_column(String, default="")
    store_page: Mapped[str] = mapped_column(String, default="")


class ItemPropertyModel(Base):
    """ORM model for property definitions (property code -> stat codes)."""

    __tablename__ = "item_properties"

    code: Mapped[str] = mapped_column(String, primary_key=True)
    enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    # [{"func": 1, "stat": "item_armor_percent"}, ...]
    stats: Mapped[list] = mapped_column(JSON, default=list)
    tooltip: Mapped[str] = mapped_column(String, default="")


class AffixModel(Base):
    """ORM model for magic prefixes and suffixes. Unique per (name, affix_type)."""

    __tablename__ = "affixes"
    __table_args__ = (UniqueConstraint("name", "affix_type"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    affix_type: Mapped[str] = mapped_column(String, nullable=False)  # prefix, suffix
    version: Mapped[int] = mapped_column(Integer, default=0)
    spawnable: Mapped[bool] = mapped_column(Boolean, default=False)
    rare: Mapped[bool] = mapped_column(Boolean, default=False)
    level: Mapped[int] = mapped_column(Integer, default=0)
    max_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    level_req: Mapped[int] = mapped_column(Integer, default=0)
    class_specific: Mapped[str] = mapped_column(String, default="")
    class_level_req: Mapped[int] = mapped_column(Integer, default=0)
    frequency: Mapped[int] = mapped_column(Integer, default=0)
    affix_group: Mapped[int] = mapped_column(Integer, default=0)
    properties: Mapped[list] = mapped_column(JSON, default=list)
    valid_item_types: Mapped[list] = mapped_column(JSON, default=list)
    excluded_item_types: Mapped[list] = mapped_column(JSON, default=list)
    transform_color: Mapped[str] = mapped_column(String, default="")
    multiply: Mapped[int] = mapped_column(Integer, default=0)
    add_cost: Mapped[int] = mapped_column(Integer, default=0)


class RunewordBaseModel(Base):
    """ORM model for precomputed runeword -> valid base pairs."""

    __tablename__ = "runeword_bases"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    runeword_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("runewords.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_base_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("item_bases.id", ondelete="CASCADE"), nullable=False
    )
    item_base_code: Mapped[str] = mapped_column(String, nullable=False)
    item_base_name: Mapped[str] = mapped_column(String, nullable=False)
    category: Mapped[str] = mapped_column(String, default="")
    max_sockets: Mapped[int] = mapped_column(Integer, default=0)
    required_sockets: Mapped[int] = mapped_column(Integer, default=0)
