"""
Unit tests for services.identity (accounts, credentials, sessions).
"""
import datetime as dt

import jwt
import pytest

from microblog.core.errors import AuthError, NotFound, ValidationError
from microblog.core.security import verify_password
from microblog.models.tweet import Tweet
from microblog.models.user import User
from microblog.services.identity import public_view


pytestmark = pytest.mark.asyncio


async def test_register_hashes_password_and_opens_session(identity, db):
    user, token = await identity.register("  alice ", "Secur3Pass!", " A@X.com ")
    stored = await User.get(id=user.id)
    assert stored.username == "alice"
    assert stored.email == "a@x.com"
    assert stored.password_hash != "Secur3Pass!"
    assert verify_password("Secur3Pass!", stored.password_hash)
    assert stored.tokens == [token]


async def test_duplicate_username_is_rejected(identity, make_user):
    await make_user("carol")
    with pytest.raises(ValidationError):
        await identity.register("carol", "Another1!", "other@mail.com")
    assert await User.filter(username="carol").count() == 1


@pytest.mark.parametrize("password", ["MyPassword1", "xxPASSWORDxx", "short1!"])
async def test_weak_passwords_are_rejected(identity, db, password):
    with pytest.raises(ValidationError):
        await identity.register("dave", password, "dave@mail.com")
    assert not await User.exists(username="dave")


@pytest.mark.parametrize("email", ["not-an-email", "dave@", "", "@mail.com"])
async def test_invalid_email_is_rejected(identity, db, email):
    with pytest.raises(ValidationError):
        await identity.register("dave", "Secur3Pass!", email)


async def test_authenticate_does_not_say_which_check_failed(identity, make_user):
    await make_user("erin", password="Secur3Pass!")
    with pytest.raises(AuthError) as unknown:
        await identity.authenticate("nobody", "Secur3Pass!")
    with pytest.raises(AuthError) as wrong:
        await identity.authenticate("erin", "WrongPass!1")
    assert unknown.value.message == wrong.value.message == "Unable to login"
    user = await identity.authenticate("erin", "Secur3Pass!")
    assert user.username == "erin"


async def test_login_compares_the_password_as_typed(identity, make_user):
    await make_user("eric", password="Secur3Pass!")
    with pytest.raises(AuthError):
        await identity.authenticate("eric", " Secur3Pass! ")
    assert (await identity.authenticate(" eric ", "Secur3Pass!")).username == "eric"


async def test_sessions_are_appended_and_revoked_one_by_one(identity, make_user):
    user, first = await make_user()
    second = await identity.issue_token(user)
    third = await identity.issue_token(user)
    assert (await User.get(id=user.id)).tokens == [first, second, third]

    await identity.revoke_token(user, second)
    assert (await User.get(id=user.id)).tokens == [first, third]

    await identity.revoke_all_tokens(user)
    assert (await User.get(id=user.id)).tokens == []


async def test_new_session_drops_tokens_that_no_longer_verify(identity, make_user):
    user, live = await make_user()
    codec = identity.tokens
    past = dt.datetime.now(dt.timezone.utc) - dt.timedelta(minutes=5)
    expired = jwt.encode({"sub": str(user.id), "exp": past}, codec.secret, algorithm=codec.algorithm)
    foreign = jwt.encode({"sub": str(user.id)}, "some-other-secret", algorithm=codec.algorithm)
    user.tokens = [*user.tokens, expired, foreign]
    await user.save(update_fields=["tokens"])

    fresh = await identity.issue_token(user)
    assert (await User.get(id=user.id)).tokens == [live, fresh]


async def test_public_view_hides_credentials(make_user):
    user, _ = await make_user("frank")
    view = public_view(user)
    assert view["username"] == "frank"
    assert "password_hash" not in view
    assert "password" not in view
    assert "tokens" not in view


async def test_profile_patch_with_unknown_key_changes_nothing(identity, make_user):
    user, _ = await make_user("gina")
    with pytest.raises(ValidationError):
        await identity.update_profile(user, {"username": "gina2", "tokens": []})
    stored = await User.get(id=user.id)
    assert stored.username == "gina"
    assert stored.tokens != []


async def test_profile_patch_with_bad_value_changes_nothing(identity, make_user):
    user, _ = await make_user("hank")
    with pytest.raises(ValidationError):
        await identity.update_profile(user, {"username": "hank2", "email": "broken"})
    assert (await User.get(id=user.id)).username == "hank"


async def test_profile_patch_rehashes_password(identity, make_user):
    user, _ = await make_user("ivan", password="Secur3Pass!")
    await identity.update_profile(user, {"password": "N3wSecret!"})
    with pytest.raises(AuthError):
        await identity.authenticate("ivan", "Secur3Pass!")
    assert (await identity.authenticate("ivan", "N3wSecret!")).id == user.id


async def test_rename_to_taken_username_is_rejected(identity, make_user):
    await make_user("jane")
    user, _ = await make_user("june")
    with pytest.raises(ValidationError):
        await identity.update_profile(user, {"username": "jane"})
    # Renaming to one's own current name is a no-op, not a conflict
    same = await identity.update_profile(user, {"username": "june"})
    assert same.username == "june"


async def test_profile_patch_for_deleted_account(identity, make_user):
    user, _ = await make_user()
    await User.filter(id=user.id).delete()
    with pytest.raises(NotFound):
        await identity.update_profile(user, {"email": "x@mail.com"})


async def test_avatar_roundtrip(identity, make_user):
    user, _ = await make_user()
    with pytest.raises(NotFound):
        await identity.get_avatar(str(user.id))
    await identity.update_profile(user, {"avatar": "data:image/png;base64,AAAA"})
    assert await identity.get_avatar(str(user.id)) == "data:image/png;base64,AAAA"
    await identity.remove_avatar(await User.get(id=user.id))
    with pytest.raises(NotFound):
        await identity.get_avatar(str(user.id))
    with pytest.raises(NotFound):
        await identity.get_avatar("not-a-uuid")


async def test_rename_that_loses_the_name_at_save_restores_copies(identity, content, make_user, monkeypatch):
    taken, _ = await make_user("kate")
    user, _ = await make_user("kim")
    own = await content.create_tweet(user, "kim's post")
    other = await content.create_tweet(taken, "kate's post")
    await content.add_comment(other.id, user, "kim says hi")

    async def free(username, exclude_id=None):
        return None

    # As if another request took the name between the check and the save
    monkeypatch.setattr(identity, "_ensure_username_free", free)
    with pytest.raises(ValidationError):
        await identity.update_profile(user, {"username": "kate"})

    assert (await User.get(id=user.id)).username == "kim"
    assert (await Tweet.get(id=own.id)).username == "kim"
    assert [c["username"] for c in (await Tweet.get(id=other.id)).comments] == ["kim"]
