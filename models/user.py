from models.base_model import Base, BaseModel
from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship


class User(BaseModel, Base):
    __tablename__ = "users"
    # identity columns are stored trimmed and lower-cased (see UserChangeset)
    user_name = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    avatar = Column(String(512), nullable=False)
    avatar_public_id = Column(String(255), nullable=True)
    cover_image = Column(String(512), nullable=False, default="")
    cover_image_public_id = Column(String(255), nullable=True)
    refresh_token = Column(Text, nullable=True)

    videos = relationship(
        "Video",
        back_populates="owner",
        passive_deletes=True
    )

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    def __repr__(self):
        return f"<User user_name={self.user_name}>"
