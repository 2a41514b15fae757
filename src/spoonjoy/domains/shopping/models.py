from sqlalchemy import Column, String, Float, Boolean, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship

from spoonjoy.core.database import Base
from spoonjoy.util.ids import new_id


class ShoppingList(Base):
    __tablename__ = "shopping_lists"

    id = Column(String(36), primary_key=True, default=new_id)
    author_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    author = relationship("User", back_populates="shopping_list")
    items = relationship("ShoppingListItem", back_populates="shopping_list")


class ShoppingListItem(Base):
    __tablename__ = "shopping_list_items"
    __table_args__ = (
        UniqueConstraint("shopping_list_id", "unit_id", "ingredient_ref_id", name="uq_shopping_item"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    shopping_list_id = Column(
        String(36), ForeignKey("shopping_lists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quantity = Column(Float, nullable=True)
    unit_id = Column(String(36), ForeignKey("units.id", ondelete="SET NULL"), nullable=True)
    ingredient_ref_id = Column(String(36), ForeignKey("ingredient_refs.id"), nullable=False)
    checked = Column(Boolean, default=False, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    shopping_list = relationship("ShoppingList", back_populates="items")
    unit = relationship("Unit")
    ingredient_ref = relationship("IngredientRef")
