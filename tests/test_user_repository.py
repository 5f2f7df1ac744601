import pytest
from sqlalchemy.exc import IntegrityError

from photoshare.models.interaction import Comment
from photoshare.models.user import UserRole
from photoshare.repositories.user_repository import UserRepository
from tests.helpers import make_photo


@pytest.fixture
def repo(db_session) -> UserRepository:
    return UserRepository(db_session)


def test_create_user_lowercases_email_and_sets_avatar(repo):
    user = repo.create_user(name="Lee Miller", email="  Lee@Example.COM ", password_hash="h", role=UserRole.CREATOR)
    assert user.email == "lee@example.com"
    assert user.role == "creator"
    assert user.avatar == "https://ui-avatars.com/api/?name=Lee%20Miller&background=6366f1&color=fff"
    assert repo.get_user_by_email("LEE@example.com").id == user.id
    assert repo.get_user_by_id(user.id) is user


def test_duplicate_email_raises_integrity_error(repo):
    repo.create_user(name="A", email="a@example.com", password_hash="h")
    with pytest.raises(IntegrityError):
        repo.create_user(name="B", email="A@example.com", password_hash="h")


def test_update_profile_propagates_snapshots(repo, db_session):
    user = repo.create_user(name="Old", email="old@example.com", password_hash="h", role=UserRole.CREATOR)
    photo = make_photo(db_session, user)
    db_session.add(Comment(photo_id=photo.id, user_id=user.id, user_name="Old", user_avatar=user.avatar, text="hi"))
    db_session.commit()

    repo.update_profile(user, name="New", avatar="https://img.example.com/new.png", bio="bio")
    db_session.refresh(photo)
    comment = db_session.query(Comment).one()

    assert user.name == "New"
    assert user.bio == "bio"
    assert photo.creator_name == "New"
    assert photo.creator_avatar == "https://img.example.com/new.png"
    assert comment.user_name == "New"


def test_bio_only_update_leaves_snapshots(repo, db_session):
    user = repo.create_user(name="Same", email="same@example.com", password_hash="h", role=UserRole.CREATOR)
    photo = make_photo(db_session, user)
    photo.creator_name = "Stale"
    db_session.commit()

    repo.update_profile(user, bio="only bio")
    db_session.refresh(photo)
    assert photo.creator_name == "Stale"
