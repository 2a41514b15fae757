from sqlalchemy import Column, String, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship

from spoonjoy.core.database import Base
from spoonjoy.util.ids import new_id


class Recipe(Base):
    __tablename__ = "recipes"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    servings = Column(String(100), nullable=True)
    image_url = Column(String(512), nullable=True)
    chef_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    chef = relationship("User", back_populates="recipes")
    steps = relationship("RecipeStep", back_populates="recipe", order_by="RecipeStep.step_num")
    cookbook_entries = relationship("RecipeInCookbook", back_populates="recipe")

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
