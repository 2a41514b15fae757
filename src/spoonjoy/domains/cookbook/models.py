from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship

from spoonjoy.core.database import Base
from spoonjoy.util.ids import new_id


class Cookbook(Base):
    __tablename__ = "cookbooks"
    __table_args__ = (UniqueConstraint("author_id", "title", name="uq_cookbook_author_title"),)

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(200), nullable=False)
    author_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    author = relationship("User", back_populates="cookbooks")
    recipes = relationship(
        "RecipeInCookbook",
        back_populates="cookbook",
        order_by="RecipeInCookbook.created_at.desc()",
        cascade="all, delete-orphan",
    )


class RecipeInCookbook(Base):
    __tablename__ = "recipes_in_cookbooks"
    __table_args__ = (UniqueConstraint("cookbook_id", "recipe_id", name="uq_cookbook_recipe"),)

    id = Column(String(36), primary_key=True, default=new_id)
    cookbook_id = Column(String(36), ForeignKey("cookbooks.id", ondelete="CASCADE"), nullable=False, index=True)
    recipe_id = Column(String(36), ForeignKey("recipes.id"), nullable=False, index=True)
    added_by_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    cookbook = relationship("Cookbook", back_populates="recipes")
    recipe = relationship("Recipe", back_populates="cookbook_entries")
