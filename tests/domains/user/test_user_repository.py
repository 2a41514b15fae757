import pytest

from spoonjoy.domains.user.exceptions import (
    EmailTakenException,
    UsernameTakenException,
    AccountLinkedElsewhereException,
    ProviderAlreadyLinkedException,
)
from spoonjoy.domains.user.models import User, OAuth
from spoonjoy.domains.user.repository import UserRepository


@pytest.mark.asyncio
async def test_save_user_with_oauth(db_session):
    """[Repository] an OAuth-only user is stored together with its linked account"""
    repo = UserRepository(db_session)

    user = await repo.save_user(
        User(email="jane@example.com", username="jane", hashed_password=None),
        OAuth(provider="google", provider_user_id="g-1", provider_username="jane@example.com"),
    )

    assert user.id is not None
    assert user.has_password is False
    accounts = await repo.get_oauth_accounts(user.id)
    assert [(a.provider, a.user_id) for a in accounts] == [("google", user.id)]
    assert (await repo.get_oauth_account("google", "g-1")).user_id == user.id


@pytest.mark.asyncio
async def test_lookups(db_session, test_user):
    repo = UserRepository(db_session)

    assert (await repo.get_user_by_email("COOK@example.com")).id == test_user.id
    assert (await repo.get_user_by_username("cook")).id == test_user.id
    assert await repo.get_user_by_username("Cook") is None
    assert await repo.email_taken_by_other("cook@example.com", test_user.id) is False
    assert await repo.email_taken_by_other("cook@example.com", "someone-else") is True


@pytest.mark.asyncio
async def test_duplicate_email(db_session, test_user):
    repo = UserRepository(db_session)

    with pytest.raises(EmailTakenException):
        await repo.save_user(User(email="cook@example.com", username="cook2", hashed_password=None))


@pytest.mark.asyncio
async def test_duplicate_username(db_session, test_user):
    """[Repository] a username collision is reported as such, not as a taken email"""
    repo = UserRepository(db_session)

    with pytest.raises(UsernameTakenException):
        await repo.save_user(User(email="fresh@example.com", username="cook", hashed_password=None))


@pytest.mark.asyncio
async def test_duplicate_oauth_identity(db_session, test_user):
    repo = UserRepository(db_session)
    await repo.add_oauth_account(
        OAuth(provider="google", provider_user_id="g-1", provider_username="cook@example.com", user_id=test_user.id)
    )

    with pytest.raises(AccountLinkedElsewhereException):
        await repo.save_user(
            User(email="new@example.com", username="new", hashed_password=None),
            OAuth(provider="google", provider_user_id="g-1", provider_username="new@example.com"),
        )


@pytest.mark.asyncio
async def test_update_user_conflicts(db_session, test_user, other_user):
    repo = UserRepository(db_session)

    test_user.email = "other@example.com"
    with pytest.raises(EmailTakenException):
        await repo.update_user(test_user)

    user = await repo.get_user_by_email("cook@example.com")
    user.username = "other"
    with pytest.raises(UsernameTakenException):
        await repo.update_user(user)


@pytest.mark.asyncio
async def test_add_oauth_account_conflicts(db_session, test_user, other_user):
    repo = UserRepository(db_session)
    test_user_id, other_user_id = test_user.id, other_user.id
    linked = OAuth(provider="google", provider_user_id="g-1", provider_username="g-1", user_id=test_user_id)
    await repo.add_oauth_account(linked)

    with pytest.raises(AccountLinkedElsewhereException):
        await repo.add_oauth_account(
            OAuth(provider="google", provider_user_id="g-1", provider_username="g-1", user_id=other_user_id)
        )

    with pytest.raises(ProviderAlreadyLinkedException):
        await repo.add_oauth_account(
            OAuth(provider="google", provider_user_id="g-2", provider_username="g-2", user_id=test_user_id)
        )


@pytest.mark.asyncio
async def test_usernames_starting_with(db_session, test_user):
    repo = UserRepository(db_session)
    for username in ["cook-1", "cookie"]:
        await repo.save_user(User(email=f"{username}@example.com", username=username))

    assert await repo.usernames_starting_with("cook") == {"cook", "cook-1", "cookie"}
    assert await repo.usernames_starting_with("chef") == set()


@pytest.mark.asyncio
async def test_delete_oauth_account(db_session, test_user):
    repo = UserRepository(db_session)
    await repo.add_oauth_account(
        OAuth(provider="apple", provider_user_id="a-1", provider_username="cook", user_id=test_user.id)
    )

    assert await repo.delete_oauth_account(test_user.id, "google") is False
    assert await repo.delete_oauth_account(test_user.id, "apple") is True
    assert await repo.get_oauth_accounts(test_user.id) == []
