"""
Tests for lifecycle statement generation.
"""
import datetime

import pytest
from sqlrecord.builder import build_delete, build_insert, build_select_all
from sqlrecord.builder import build_select_one, build_update
from sqlrecord.exceptions import MissingIdentifierError, UnregisteredTypeError
from sqlrecord.types import TypeRegistry

from tests.fixtures.models import Post, Tag, User

CREATED = datetime.datetime(2024, 5, 6, 7, 8, 9)


def test_insert_skips_generated_columns():
    """Test INSERT covers initialized fields minus id/updated_at/deleted_at"""
    user = User(username='mark', password='x', id=9, created_at=CREATED,
                updated_at=CREATED, deleted_at=CREATED)

    bound = build_insert(user, TypeRegistry(), 'sqlite')

    assert bound.sql == (
        'INSERT INTO "user" ("created_at", "username", "password") '
        'VALUES (:val_created_at, :val_username, :val_password)')
    assert bound.params == [
        ('val_created_at', '2024-05-06 07:08:09'),
        ('val_username', 'mark'),
        ('val_password', 'x'),
    ]


def test_insert_binds_reference_id():
    """Test reference fields bind the referenced record's id, not the record"""
    post = Post(title='hello', author=User(id=7, username='mark'))

    bound = build_insert(post, TypeRegistry())

    assert bound.as_dict() == {'val_title': 'hello', 'val_author': 7}


def test_insert_reference_without_id():
    """Test binding a reference without an id raises MissingIdentifierError"""
    post = Post(title='hello', author=User(username='mark'))

    with pytest.raises(MissingIdentifierError, match='author'):
        build_insert(post, TypeRegistry())


def test_insert_uses_custom_serializer():
    """Test native values pass through the registered serializer"""
    registry = TypeRegistry()
    registry.add('bool', 'INTEGER', lambda v: 1 if v else 0, bool)

    bound = build_insert(Tag(label='a', pinned=True), registry)

    assert bound.as_dict() == {'val_label': 'a', 'val_pinned': 1}


def test_insert_none_is_not_serialized():
    """Test None values bypass the serializer"""
    bound = build_insert(Post(title='hello', body=None), TypeRegistry())
    assert bound.as_dict() == {'val_title': 'hello', 'val_body': None}


def test_insert_unregistered_type():
    """Test a native field whose type was removed from the registry"""
    registry = TypeRegistry()
    registry.remove('str')
    with pytest.raises(UnregisteredTypeError):
        build_insert(User(username='mark'), registry)


def test_insert_without_columns():
    """Test an empty record inserts default values"""
    assert build_insert(User(), TypeRegistry()).sql == 'INSERT INTO "user" DEFAULT VALUES'


def test_update_requires_id():
    """Test UPDATE without id raises MissingIdentifierError"""
    with pytest.raises(MissingIdentifierError):
        build_update(User(username='mark'), TypeRegistry())
    with pytest.raises(MissingIdentifierError):
        build_update(User(username='mark', id=None), TypeRegistry())


def test_update_sets_initialized_fields():
    """Test UPDATE sets every initialized field and targets the id"""
    user = User(id=4, username='mark', updated_at=CREATED)

    bound = build_update(user, TypeRegistry())

    assert bound.sql == (
        'UPDATE "user" SET "updated_at" = :val_updated_at, "username" = :val_username '
        'WHERE "id" = :id')
    assert bound.params == [
        ('val_updated_at', '2024-05-06 07:08:09'),
        ('val_username', 'mark'),
        ('id', 4),
    ]


def test_update_with_only_id():
    """Test UPDATE with nothing to set is rejected"""
    with pytest.raises(ValueError, match='Nothing to update'):
        build_update(User(id=4), TypeRegistry())


def test_delete():
    """Test hard DELETE targets the id"""
    bound = build_delete(User(id=4, username='mark'), 'sqlite')

    assert bound.sql == 'DELETE FROM "user" WHERE "id" = :id'
    assert bound.params == [('id', 4)]
    with pytest.raises(MissingIdentifierError):
        build_delete(User(username='mark'))


def test_select_one_filters_soft_deleted():
    """Test single SELECT ANDs initialized fields with the deleted_at filter"""
    bound = build_select_one(User(username='mark', password='x'), TypeRegistry())

    assert bound.sql == (
        'SELECT * FROM "user" WHERE "username" = :val_username '
        'AND "password" = :val_password AND "deleted_at" IS NULL')
    assert bound.as_dict() == {'val_username': 'mark', 'val_password': 'x'}


def test_select_one_without_fields():
    """Test single SELECT on an empty record only filters deleted_at"""
    bound = build_select_one(User(), TypeRegistry())

    assert bound.sql == 'SELECT * FROM "user" WHERE "deleted_at" IS NULL'
    assert bound.params == []


def test_select_one_null_field():
    """Test None filters render as IS NULL"""
    bound = build_select_one(Post(body=None), TypeRegistry())

    assert bound.sql == 'SELECT * FROM "post" WHERE "body" IS NULL AND "deleted_at" IS NULL'
    assert bound.params == []


def test_select_all_without_fields():
    """Test multi SELECT on an empty record has no filter at all"""
    bound = build_select_all(User(), TypeRegistry())

    assert bound.sql == 'SELECT * FROM "user"'
    assert bound.params == []


def test_select_all_conjunction():
    """Test multi SELECT ANDs the initialized fields without the deleted_at filter"""
    post = Post(title='hello', author=User(id=2))

    bound = build_select_all(post, TypeRegistry())

    assert bound.sql == (
        'SELECT * FROM "post" WHERE "title" = :val_title AND "author" = :val_author')
    assert bound.as_dict() == {'val_title': 'hello', 'val_author': 2}


def test_reference_holding_bare_id():
    """Test a reference field holding a plain id is rejected as the wrong type"""
    post = Post(title='hello', author=7)

    with pytest.raises(TypeError, match='Post.author must hold a User record, got int'):
        build_insert(post, TypeRegistry())
    with pytest.raises(TypeError):
        build_select_all(post, TypeRegistry())
