"""
Record types shared by the unit and integration tests.
"""
from sqlrecord import Record, column


class User(Record):
    username: str = column(unique=True)
    password: str


class Post(Record):
    title: str
    body: str | None
    views: int = 0
    author: User


class Tag(Record):
    __tablename__ = 'tags'
    label: str
    weight: float | None
    pinned: bool = False


class Comment(Record):
    post: 'Post'
    text: str
    parent: 'Comment | None'
