from sqlalchemy import BigInteger, Column, DateTime, Identity, Integer, Text, func
from sqlalchemy.dialects.postgresql import ARRAY, UUID

from database import Base


class Book(Base):
    __tablename__ = "books"

    id = Column(BigInteger, Identity(), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    year = Column(Integer, nullable=False)
    pages = Column(Integer, nullable=False)
    genres = Column(ARRAY(Text), nullable=False)
    version = Column(UUID(as_uuid=True), nullable=False, server_default=func.gen_random_uuid())

    def __repr__(self) -> str:
        return f"<Book id={self.id} title={self.title!r} version={self.version}>"
