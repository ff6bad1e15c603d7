import enum

from sqlalchemy import Column, Enum, Integer, String

from app.models.base import Base


class ItemType(str, enum.Enum):
    BOOK = "BOOK"
    ALBUM = "ALBUM"
    MOVIE = "MOVIE"


class Item(Base):
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    price = Column(Integer, default=0, nullable=False)
    stock_quantity = Column(Integer, default=0, nullable=False)
    item_type = Column(Enum(ItemType), default=ItemType.BOOK, nullable=False)

    # Book-only details
    author = Column(String, nullable=True)
    isbn = Column(String, nullable=True)

    def __repr__(self) -> str:
        return f"<Item id={self.id} name={self.name!r}>"
