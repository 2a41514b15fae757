from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship

from spoonjoy.core.database import Base
from spoonjoy.util.ids import new_id


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, unique=True)
    username = Column(String(64), nullable=False, unique=True)
    hashed_password = Column(String(255), nullable=True)  # None -> OAuth-only user
    photo_url = Column(String(512), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    oauth_accounts = relationship("OAuth", back_populates="user", order_by="OAuth.created_at")
    recipes = relationship("Recipe", back_populates="chef")
    cookbooks = relationship("Cookbook", back_populates="author")
    shopping_list = relationship("ShoppingList", back_populates="author", uselist=False)

    @property
    def has_password(self) -> bool:
        return self.hashed_password is not None


class OAuth(Base):
    __tablename__ = "oauth_accounts"
    __table_args__ = (
        UniqueConstraint("provider", "provider_user_id", name="uq_oauth_provider_account"),
        UniqueConstraint("user_id", "provider", name="uq_oauth_user_provider"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    provider = Column(String(20), nullable=False)
    provider_user_id = Column(String(255), nullable=False)
    provider_username = Column(String(255), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="oauth_accounts")
