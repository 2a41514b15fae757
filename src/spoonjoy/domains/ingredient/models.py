from sqlalchemy import Column, String, Float, Integer, DateTime, ForeignKey, Index, func
from sqlalchemy.orm import relationship

from spoonjoy.core.database import Base
from spoonjoy.util.ids import new_id


class Unit(Base):
    __tablename__ = "units"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(50), nullable=False, unique=True)  # stored lower-cased
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class IngredientRef(Base):
    __tablename__ = "ingredient_refs"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False, unique=True)  # stored lower-cased
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class Ingredient(Base):
    __tablename__ = "ingredients"
    __table_args__ = (Index("ix_ingredient_recipe_step", "recipe_id", "step_num"),)

    id = Column(String(36), primary_key=True, default=new_id)
    recipe_id = Column(String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True)
    step_num = Column(Integer, nullable=False)
    quantity = Column(Float, nullable=False)
    unit_id = Column(String(36), ForeignKey("units.id"), nullable=False, index=True)
    ingredient_ref_id = Column(String(36), ForeignKey("ingredient_refs.id"), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    unit = relationship("Unit")
    ingredient_ref = relationship("IngredientRef")
