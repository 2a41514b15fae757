from sqlalchemy import select, delete, func
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from sqlalchemy.ext.asyncio.session import AsyncSession
from sqlalchemy.orm import selectinload

from spoonjoy.core.exception.exceptions import BaseCustomException, DatabaseException, UnexpectedException
from spoonjoy.domains.user.exceptions import (
    EmailTakenException,
    UsernameTakenException,
    AccountLinkedElsewhereException,
    ProviderAlreadyLinkedException,
)
from spoonjoy.domains.user.models import User, OAuth


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def save_user(self, user: User, oauth: OAuth | None = None) -> User:
        # Read before the commit: a rollback expunges the pending rows
        email, username = user.email, user.username
        oauth_key = (oauth.provider, oauth.provider_user_id) if oauth is not None else None
        try:
            self.session.add(user)
            if oauth is not None:
                await self.session.flush()
                oauth.user_id = user.id
                self.session.add(oauth)
            await self.session.commit()
            await self.session.refresh(user)
            return user
        except IntegrityError as e:
            await self.session.rollback()
            raise await self._conflict(e, email, username, oauth_key=oauth_key)
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to save user: {str(e)}")

    async def _conflict(
        self,
        error: IntegrityError,
        email: str | None,
        username: str | None,
        exclude_user_id: str | None = None,
        oauth_key: tuple[str, str] | None = None,
    ) -> BaseCustomException:
        """Works out which unique key a rejected write collided with."""
        others = (User.id != exclude_user_id,) if exclude_user_id else ()
        if email and await self._get_one(func.lower(User.email) == email.lower(), *others):
            return EmailTakenException()
        if username and await self._get_one(User.username == username, *others):
            return UsernameTakenException()
        if oauth_key is not None and await self.get_oauth_account(*oauth_key):
            return AccountLinkedElsewhereException()
        return DatabaseException(detail=f"Failed to save user: {str(error)}")

    async def _get_one(self, *where_conditions, with_oauth: bool = False) -> User | None:
        try:
            stmt = select(User).where(*where_conditions)
            if with_oauth:
                stmt = stmt.options(selectinload(User.oauth_accounts))
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load user: {str(e)}")
        except Exception as e:
            raise UnexpectedException(detail=f"Unexpected error: {str(e)}")

    async def get_user_by_id(self, user_id: str, with_oauth: bool = False) -> User | None:
        return await self._get_one(User.id == user_id, with_oauth=with_oauth)

    async def get_user_by_email(self, email: str) -> User | None:
        # Emails are stored lower-cased, but rows written before normalisation may not be
        return await self._get_one(func.lower(User.email) == email.lower())

    async def get_user_by_username(self, username: str) -> User | None:
        return await self._get_one(User.username == username)

    async def email_taken_by_other(self, email: str, user_id: str) -> bool:
        user = await self._get_one(func.lower(User.email) == email.lower(), User.id != user_id)
        return user is not None

    async def usernames_starting_with(self, base: str) -> set[str]:
        try:
            stmt = select(User.username).where(User.username.like(f"{base}%"))
            result = await self.session.execute(stmt)
            return set(result.scalars().all())
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load usernames: {str(e)}")

    async def update_user(self, user: User) -> None:
        user_id, email, username = user.id, user.email, user.username
        try:
            self.session.add(user)
            await self.session.commit()
            await self.session.refresh(user)
        except IntegrityError as e:
            await self.session.rollback()
            raise await self._conflict(e, email, username, exclude_user_id=user_id)
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to update user: {str(e)}")

    # --- OAuth accounts ---
    async def get_oauth_account(self, provider: str, provider_user_id: str) -> OAuth | None:
        try:
            stmt = select(OAuth).where(
                OAuth.provider == provider, OAuth.provider_user_id == provider_user_id
            )
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load OAuth account: {str(e)}")

    async def get_oauth_accounts(self, user_id: str) -> list[OAuth]:
        try:
            stmt = select(OAuth).where(OAuth.user_id == user_id).order_by(OAuth.created_at)
            result = await self.session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load OAuth accounts: {str(e)}")

    async def add_oauth_account(self, oauth: OAuth) -> OAuth:
        provider, provider_user_id = oauth.provider, oauth.provider_user_id
        try:
            self.session.add(oauth)
            await self.session.commit()
            return oauth
        except IntegrityError:
            await self.session.rollback()
            if await self.get_oauth_account(provider, provider_user_id):
                raise AccountLinkedElsewhereException()
            raise ProviderAlreadyLinkedException()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to link OAuth account: {str(e)}")

    async def delete_oauth_account(self, user_id: str, provider: str) -> bool:
        try:
            stmt = delete(OAuth).where(OAuth.user_id == user_id, OAuth.provider == provider)
            result = await self.session.execute(stmt)
            await self.session.commit()
            return result.rowcount > 0
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to unlink OAuth account: {str(e)}")
