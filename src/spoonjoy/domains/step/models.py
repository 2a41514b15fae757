from sqlalchemy import (
    Column,
    String,
    Text,
    Integer,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
    func,
)
from sqlalchemy.orm import relationship

from spoonjoy.core.database import Base
from spoonjoy.util.ids import new_id


class RecipeStep(Base):
    __tablename__ = "recipe_steps"
    __table_args__ = (UniqueConstraint("recipe_id", "step_num", name="uq_recipe_step_num"),)

    id = Column(String(36), primary_key=True, default=new_id)
    recipe_id = Column(String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True)
    step_num = Column(Integer, nullable=False)
    step_title = Column(String(200), nullable=True)
    description = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    recipe = relationship("Recipe", back_populates="steps")

    # Rows keyed by (recipe_id, step_num) are renumbered explicitly by the step
    # repository, so these joins carry no database-level foreign key.
    ingredients = relationship(
        "Ingredient",
        primaryjoin="and_(RecipeStep.recipe_id == foreign(Ingredient.recipe_id), "
        "RecipeStep.step_num == foreign(Ingredient.step_num))",
        viewonly=True,
        order_by="Ingredient.id",
    )
    using_steps = relationship(
        "StepOutputUse",
        primaryjoin="and_(RecipeStep.recipe_id == foreign(StepOutputUse.recipe_id), "
        "RecipeStep.step_num == foreign(StepOutputUse.input_step_num))",
        viewonly=True,
        order_by="StepOutputUse.output_step_num",
    )


class StepOutputUse(Base):
    """Step ``input_step_num`` consumes the output of the earlier step ``output_step_num``."""

    __tablename__ = "step_output_uses"
    __table_args__ = (
        UniqueConstraint("recipe_id", "output_step_num", "input_step_num", name="uq_step_output_use"),
        CheckConstraint("output_step_num < input_step_num", name="ck_step_output_use_earlier"),
        Index("ix_step_output_use_input", "recipe_id", "input_step_num"),
        Index("ix_step_output_use_output", "recipe_id", "output_step_num"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    recipe_id = Column(String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    output_step_num = Column(Integer, nullable=False)
    input_step_num = Column(Integer, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    output_of_step = relationship(
        "RecipeStep",
        primaryjoin="and_(foreign(StepOutputUse.recipe_id) == RecipeStep.recipe_id, "
        "foreign(StepOutputUse.output_step_num) == RecipeStep.step_num)",
        viewonly=True,
        uselist=False,
    )
