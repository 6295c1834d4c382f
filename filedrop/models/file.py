# filedrop/models/file.py
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from filedrop.models.database import Base
from filedrop.models.user import new_id


class File(Base):
    __tablename__ = "files"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(512), nullable=False)            # Name the user uploaded
    key = Column(String(1024), unique=True, nullable=False)  # Object storage key
    url = Column(String(2048), nullable=True)
    size = Column(Integer, nullable=False, default=0)     # Size in bytes
    content_type = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)

    # Many files → one owner (User)
    owner = relationship("User", back_populates="files")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "key": self.key,
            "url": self.url,
            "size": self.size,
            "contentType": self.content_type,
            "userId": self.user_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
